"""
Document Title Audit - the page has a non-empty <title>.
"""

from typing import Any, Mapping

from pageaudit.kernel.context import AuditContext
from pageaudit.schemas.audit import AuditMeta, AuditProduct, GatherMode, ScoreDisplayMode


class DocumentTitleAudit:
    """Binary check on the Title artifact (the document's title text)."""

    meta = AuditMeta(
        id="document-title",
        title="Document has a `<title>` element",
        failure_title="Document doesn't have a `<title>` element",
        description=(
            "The title gives screen reader users an overview of the page, and search "
            "engine users rely on it heavily to determine if a page is relevant to their search."
        ),
        required_artifacts=("Title",),
        score_display_mode=ScoreDisplayMode.BINARY,
        supported_modes=(GatherMode.NAVIGATION, GatherMode.SNAPSHOT),
        guidance_level=2,
    )

    def audit(self, artifacts: Mapping[str, Any], context: AuditContext) -> AuditProduct:
        title = artifacts["Title"]
        has_title = isinstance(title, str) and bool(title.strip())
        return AuditProduct(score=1.0 if has_title else 0.0)

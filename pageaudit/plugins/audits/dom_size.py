"""
DOM Size Audit - penalizes pages with very large DOM trees.

Scored on a log-normal curve over the number of body elements:
818 elements scores 0.9, 1400 scores 0.5 (overridable via options).
"""

from typing import Any, Dict, Mapping

from pageaudit.engines.audit.details import make_table_details
from pageaudit.kernel.context import AuditContext
from pageaudit.schemas.artifacts import DomStats
from pageaudit.schemas.audit import (
    AuditMeta,
    AuditProduct,
    GatherMode,
    NumericUnit,
    ScoreDisplayMode,
    ScoreOptions,
)


class DomSizeAudit:
    """Numeric audit over the DOMStats artifact."""

    meta = AuditMeta(
        id="dom-size",
        title="Avoids an excessive DOM size",
        failure_title="Avoid an excessive DOM size",
        description=(
            "A large DOM will increase memory usage, cause longer style calculations, "
            "and produce costly layout reflows."
        ),
        required_artifacts=("DOMStats",),
        score_display_mode=ScoreDisplayMode.NUMERIC,
        supported_modes=(GatherMode.NAVIGATION, GatherMode.SNAPSHOT),
        guidance_level=1,
    )

    default_options: Dict[str, Any] = {
        "p10": 818,
        "median": 1400,
    }

    def audit(self, artifacts: Mapping[str, Any], context: AuditContext) -> AuditProduct:
        stats = DomStats.model_validate(artifacts["DOMStats"])
        options = context.options

        headings = [
            {"key": "statistic", "value_type": "text", "label": "Statistic"},
            {"key": "value", "value_type": "numeric", "label": "Value"},
        ]
        items = [
            {"statistic": "Total DOM Elements", "value": stats.total_body_elements},
            {"statistic": "Maximum DOM Depth", "value": stats.depth.max},
            {"statistic": "Maximum Child Elements", "value": stats.width.max},
        ]

        return AuditProduct(
            score=None,
            numeric_value=stats.total_body_elements,
            numeric_unit=NumericUnit.ELEMENT,
            scoring_options=ScoreOptions(p10=options["p10"], median=options["median"]),
            display_value=f"{stats.total_body_elements:,} elements",
            details=make_table_details(headings, items),
        )

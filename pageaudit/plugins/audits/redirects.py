"""
Redirects Audit - time lost to redirects before the main document.
"""

from typing import Any, List, Mapping

from pageaudit.engines.audit.details import make_table_details
from pageaudit.engines.computed.redirect_chain import RedirectChain
from pageaudit.kernel.context import AuditContext
from pageaudit.schemas.audit import (
    AuditMeta,
    AuditProduct,
    GatherMode,
    MetricSavings,
    NumericUnit,
    ScoreDisplayMode,
)


class RedirectsAudit:
    """Sums the time between consecutive hops of the redirect chain."""

    meta = AuditMeta(
        id="redirects",
        title="Avoids multiple page redirects",
        failure_title="Avoid multiple page redirects",
        description="Redirects introduce additional delays before the page can be loaded.",
        required_artifacts=("URL", "NetworkRecords"),
        score_display_mode=ScoreDisplayMode.METRIC_SAVINGS,
        supported_modes=(GatherMode.NAVIGATION,),
        guidance_level=2,
    )

    async def audit(self, artifacts: Mapping[str, Any], context: AuditContext) -> AuditProduct:
        chain = await RedirectChain.request(
            {"URL": artifacts["URL"], "NetworkRecords": artifacts["NetworkRecords"]},
            context,
        )

        items: List[dict] = []
        wasted_ms = 0.0
        for hop, following in zip(chain, chain[1:]):
            hop_ms = max(0.0, following.network_request_time - hop.network_request_time)
            wasted_ms += hop_ms
            items.append({"url": hop.url, "wasted_ms": hop_ms})
        if len(chain) > 1:
            items.append({"url": chain[-1].url, "wasted_ms": 0.0})

        headings = [
            {"key": "url", "value_type": "url", "label": "URL"},
            {"key": "wasted_ms", "value_type": "ms", "label": "Time Spent"},
        ]
        redirect_count = len(chain) - 1

        return AuditProduct(
            score=1.0 if redirect_count == 0 else 0.0,
            numeric_value=wasted_ms,
            numeric_unit=NumericUnit.MILLISECOND,
            display_value=(
                f"Est savings of {round(wasted_ms):,} ms" if redirect_count else None
            ),
            metric_savings=MetricSavings(FCP=wasted_ms, LCP=wasted_ms),
            details=make_table_details(headings, items, wasted_ms=wasted_ms or None),
        )

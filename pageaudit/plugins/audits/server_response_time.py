"""
Server Response Time Audit - time until the main document's headers arrived.
"""

from typing import Any, Dict, Mapping

from pageaudit.engines.audit.details import make_table_details
from pageaudit.engines.computed.main_resource import MainResource
from pageaudit.kernel.context import AuditContext
from pageaudit.schemas.audit import (
    AuditMeta,
    AuditProduct,
    GatherMode,
    MetricSavings,
    NumericUnit,
    ScoreDisplayMode,
)


class ServerResponseTimeAudit:
    """
    Passes when the root document responded within the threshold.

    Savings are reported against a 100ms target response time.
    """

    meta = AuditMeta(
        id="server-response-time",
        title="Initial server response time was short",
        failure_title="Reduce initial server response time",
        description=(
            "Keep the server response time for the main document short because all "
            "other requests depend on it."
        ),
        required_artifacts=("URL", "NetworkRecords"),
        score_display_mode=ScoreDisplayMode.METRIC_SAVINGS,
        supported_modes=(GatherMode.NAVIGATION,),
        guidance_level=1,
    )

    default_options: Dict[str, Any] = {
        "too_slow_threshold_ms": 600,
        "target_ms": 100,
    }

    async def audit(self, artifacts: Mapping[str, Any], context: AuditContext) -> AuditProduct:
        main_resource = await MainResource.request(
            {"URL": artifacts["URL"], "NetworkRecords": artifacts["NetworkRecords"]},
            context,
        )
        if main_resource.response_headers_end_time is None:
            raise ValueError("Main resource has no response timing")

        response_time = max(
            0.0,
            main_resource.response_headers_end_time - main_resource.network_request_time,
        )
        passed = response_time < context.options["too_slow_threshold_ms"]
        savings = max(0.0, response_time - context.options["target_ms"])

        headings = [
            {"key": "url", "value_type": "url", "label": "URL"},
            {"key": "response_time", "value_type": "ms", "label": "Time Spent"},
        ]
        items = [{"url": main_resource.url, "response_time": response_time}]

        return AuditProduct(
            score=1.0 if passed else 0.0,
            numeric_value=response_time,
            numeric_unit=NumericUnit.MILLISECOND,
            display_value=f"Root document took {round(response_time):,} ms",
            metric_savings=MetricSavings(FCP=savings, LCP=savings),
            details=make_table_details(headings, items, wasted_ms=savings or None),
        )

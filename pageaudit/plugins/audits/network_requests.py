"""
Network Requests Audit - informative listing of every request the page made.
"""

from typing import Any, Mapping

from pageaudit.engines.audit.details import make_table_details
from pageaudit.engines.computed.main_resource import parse_network_records
from pageaudit.kernel.context import AuditContext
from pageaudit.schemas.audit import AuditMeta, AuditProduct, ScoreDisplayMode


class NetworkRequestsAudit:
    """Lists requests with start offsets relative to the earliest request."""

    meta = AuditMeta(
        id="network-requests",
        title="Network Requests",
        description="Lists the network requests that were made during page load.",
        required_artifacts=("NetworkRecords",),
        score_display_mode=ScoreDisplayMode.INFORMATIVE,
    )

    def audit(self, artifacts: Mapping[str, Any], context: AuditContext) -> AuditProduct:
        records = parse_network_records(artifacts["NetworkRecords"])
        if not records:
            return AuditProduct(score=None, not_applicable=True)

        earliest = min(record.network_request_time for record in records)
        items = [
            {
                "url": record.url,
                "resource_type": record.resource_type,
                "status_code": record.status_code,
                "start_time": record.network_request_time - earliest,
                "end_time": (
                    record.network_end_time - earliest
                    if record.network_end_time is not None
                    else None
                ),
                "transfer_size": record.transfer_size,
            }
            for record in sorted(records, key=lambda r: r.network_request_time)
        ]
        headings = [
            {"key": "url", "value_type": "url", "label": "URL"},
            {"key": "resource_type", "value_type": "text", "label": "Resource Type"},
            {"key": "status_code", "value_type": "numeric", "label": "Status Code"},
            {"key": "start_time", "value_type": "ms", "label": "Start Time"},
            {"key": "end_time", "value_type": "ms", "label": "End Time"},
            {"key": "transfer_size", "value_type": "bytes", "label": "Transfer Size"},
        ]

        return AuditProduct(
            score=None,
            display_value=f"{len(records)} requests",
            details=make_table_details(headings, items, sorted_by=["start_time"]),
        )

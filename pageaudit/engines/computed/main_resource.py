"""
Main Resource - the network record of the page's main document.
"""

from typing import Any, List, Mapping
from urllib.parse import urldefrag

from pageaudit.engines.computed.base import ComputedArtifact
from pageaudit.kernel.context import AuditContext
from pageaudit.schemas.artifacts import NetworkRecord, PageUrl


def parse_network_records(raw: Any) -> List[NetworkRecord]:
    """Validate a NetworkRecords artifact."""
    return [NetworkRecord.model_validate(item) for item in raw]


class MainResource(ComputedArtifact):
    """Finds the main document among the network records by URL (fragment ignored)."""

    name = "MainResource"
    keys = ("URL", "NetworkRecords")

    @classmethod
    async def compute(cls, dependencies: Mapping[str, Any], context: AuditContext) -> NetworkRecord:
        page_url = PageUrl.model_validate(dependencies["URL"])
        records = parse_network_records(dependencies["NetworkRecords"])

        main_url = urldefrag(page_url.main_document_url).url
        for record in records:
            if urldefrag(record.url).url == main_url:
                return record

        raise ValueError("Unable to identify the main resource")

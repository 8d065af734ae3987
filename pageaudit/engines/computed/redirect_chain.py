"""
Redirect Chain - the hops from the requested URL to the main document.
"""

from typing import Any, Dict, List, Mapping
from urllib.parse import urldefrag

from pageaudit.engines.computed.base import ComputedArtifact
from pageaudit.engines.computed.main_resource import MainResource, parse_network_records
from pageaudit.kernel.context import AuditContext
from pageaudit.schemas.artifacts import NetworkRecord, PageUrl


class RedirectChain(ComputedArtifact):
    """
    Records from the requested URL through each redirect to the main resource.

    A page that was not redirected has a chain of exactly one record.
    """

    name = "RedirectChain"
    keys = ("URL", "NetworkRecords")

    @classmethod
    async def compute(
        cls,
        dependencies: Mapping[str, Any],
        context: AuditContext,
    ) -> List[NetworkRecord]:
        main_resource = await MainResource.request(dependencies, context)
        page_url = PageUrl.model_validate(dependencies["URL"])
        records = parse_network_records(dependencies["NetworkRecords"])

        by_url: Dict[str, NetworkRecord] = {}
        for record in records:
            by_url.setdefault(urldefrag(record.url).url, record)

        current = by_url.get(urldefrag(page_url.requested_url).url)
        if current is None:
            return [main_resource]

        chain = [current]
        seen = {current.request_id}
        while current.redirect_destination and current.request_id != main_resource.request_id:
            following = by_url.get(urldefrag(current.redirect_destination).url)
            if following is None or following.request_id in seen:
                break
            chain.append(following)
            seen.add(following.request_id)
            current = following

        if chain[-1].request_id != main_resource.request_id:
            # Collector lost a hop; report what we can prove.
            return [main_resource]
        return chain

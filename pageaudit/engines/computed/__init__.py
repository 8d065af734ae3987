"""
Computed artifacts - derived values shared by audits through the run cache.
"""

from pageaudit.engines.computed.base import ComputedArtifact
from pageaudit.engines.computed.main_resource import MainResource, parse_network_records
from pageaudit.engines.computed.redirect_chain import RedirectChain

__all__ = [
    "ComputedArtifact",
    "MainResource",
    "RedirectChain",
    "parse_network_records",
]

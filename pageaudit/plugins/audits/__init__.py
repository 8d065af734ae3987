"""
Built-in audits.

Each audit is a plain class satisfying the Audit contract:
- meta: AuditMeta
- default_options (optional)
- audit(artifacts, context) -> AuditProduct, sync or async
"""

from pageaudit.engines.audit.registry import AuditRegistry
from pageaudit.plugins.audits.document_title import DocumentTitleAudit
from pageaudit.plugins.audits.dom_size import DomSizeAudit
from pageaudit.plugins.audits.network_requests import NetworkRequestsAudit
from pageaudit.plugins.audits.redirects import RedirectsAudit
from pageaudit.plugins.audits.server_response_time import ServerResponseTimeAudit

BUILTIN_AUDITS = (
    DocumentTitleAudit,
    DomSizeAudit,
    ServerResponseTimeAudit,
    RedirectsAudit,
    NetworkRequestsAudit,
)


def create_default_registry() -> AuditRegistry:
    """A registry holding every built-in audit, in report order."""
    registry = AuditRegistry()
    for audit_cls in BUILTIN_AUDITS:
        registry.register(audit_cls)
    return registry


__all__ = [
    "BUILTIN_AUDITS",
    "create_default_registry",
    "DocumentTitleAudit",
    "DomSizeAudit",
    "NetworkRequestsAudit",
    "RedirectsAudit",
    "ServerResponseTimeAudit",
]

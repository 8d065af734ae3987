"""
Audits API - what the service can run.

Endpoints:
  GET /audits
  GET /audits/{audit_id}
"""

from typing import List

from fastapi import APIRouter, HTTPException, status

from pageaudit.api.deps import Registry
from pageaudit.kernel.errors import UnknownAuditError
from pageaudit.schemas.audit import AuditMeta
from pageaudit.schemas.common import ErrorResponse

router = APIRouter()


@router.get("", response_model=List[AuditMeta])
async def list_audits(registry: Registry):
    """Metadata of every registered audit, in default run order."""
    return registry.metas()


@router.get("/{audit_id}", response_model=AuditMeta, responses={404: {"model": ErrorResponse}})
async def get_audit(audit_id: str, registry: Registry):
    """Metadata of one audit."""
    try:
        return registry.get(audit_id).meta
    except UnknownAuditError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, str(exc))

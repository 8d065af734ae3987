"""
Runs API - execute audits over a page's collected artifacts.

Endpoints:
  POST /runs
"""

from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from pageaudit.api.deps import AppSettings, Runner
from pageaudit.kernel.artifacts import artifacts_from_payload
from pageaudit.kernel.errors import UnknownAuditError
from pageaudit.logging_config import get_logger
from pageaudit.schemas.audit import GatherMode
from pageaudit.schemas.common import ErrorResponse
from pageaudit.schemas.run import (
    AuditSelection,
    Category,
    FormFactor,
    RunReport,
    RunSettings,
    ThrottlingMethod,
)

logger = get_logger(__name__)
router = APIRouter()


# ── Request schemas ──────────────────────────────────────────────────────

class RunSettingsRequest(BaseModel):
    """Run settings; anything omitted falls back to the service defaults."""
    gather_mode: Optional[GatherMode] = None
    form_factor: Optional[FormFactor] = None
    throttling_method: Optional[ThrottlingMethod] = None
    locale: Optional[str] = None
    only_audits: Optional[Tuple[str, ...]] = None
    skip_audits: Optional[Tuple[str, ...]] = None


class RunRequest(BaseModel):
    artifacts: Dict[str, Any] = Field(
        ..., description="Artifact name -> collected value.",
    )
    artifact_errors: Dict[str, str] = Field(
        default_factory=dict,
        description="Artifact name -> error message, for gatherers that failed.",
    )
    settings: RunSettingsRequest = Field(default_factory=RunSettingsRequest)
    audits: Optional[List[AuditSelection]] = Field(
        None, description="Audits to run, in order, with options. Defaults to all registered.",
    )
    categories: List[Category] = Field(default_factory=list)


# ── Endpoints ────────────────────────────────────────────────────────────

@router.post(
    "",
    response_model=RunReport,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_run(body: RunRequest, runner: Runner, app_settings: AppSettings):
    """Run the audit battery and return the aggregated report."""
    run_settings = RunSettings.from_app_settings(
        app_settings,
        **body.settings.model_dump(),
    )
    artifacts = artifacts_from_payload(body.artifacts, body.artifact_errors)

    try:
        return await runner.run(
            artifacts,
            settings=run_settings,
            selection=body.audits,
            categories=body.categories,
        )
    except UnknownAuditError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, str(exc))
    except ValueError as exc:
        logger.info("Rejected run request: %s", exc)
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))

"""
Run schemas - run-scoped settings, categories and the aggregated report.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from pageaudit.schemas.audit import AuditResult, GatherMode
from pageaudit.schemas.i18n import LocalizableText

if TYPE_CHECKING:
    from pageaudit.config import Settings


class FormFactor(str, Enum):
    """Device class the page was inspected as."""
    MOBILE = "mobile"
    DESKTOP = "desktop"


class ThrottlingMethod(str, Enum):
    """How network/CPU throttling was applied during collection."""
    SIMULATE = "simulate"
    DEVTOOLS = "devtools"
    PROVIDED = "provided"


class RunSettings(BaseModel):
    """Run-wide settings. Immutable for the lifetime of a run."""

    model_config = ConfigDict(frozen=True)

    gather_mode: GatherMode = GatherMode.NAVIGATION
    form_factor: FormFactor = FormFactor.MOBILE
    throttling_method: ThrottlingMethod = ThrottlingMethod.SIMULATE
    locale: str = "en-US"
    # Audit filters; None means no filter
    only_audits: Optional[Tuple[str, ...]] = None
    skip_audits: Optional[Tuple[str, ...]] = None

    @classmethod
    def from_app_settings(cls, settings: "Settings", **overrides: Any) -> "RunSettings":
        """Run settings seeded from application defaults, with explicit overrides on top."""
        values: Dict[str, Any] = {
            "gather_mode": settings.default_gather_mode,
            "form_factor": settings.default_form_factor,
            "throttling_method": settings.default_throttling_method,
            "locale": settings.default_locale,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class AuditSelection(BaseModel):
    """One audit to run, with options layered over the audit's defaults."""

    id: str
    options: Dict[str, Any] = Field(default_factory=dict)


class CategoryAuditRef(BaseModel):
    """Membership of an audit in a category."""

    id: str
    weight: float = Field(1.0, ge=0)


class Category(BaseModel):
    """A weighted group of audits scored together."""

    id: str
    title: LocalizableText
    description: Optional[LocalizableText] = None
    audit_refs: List[CategoryAuditRef]


class CategoryResult(BaseModel):
    """Scored category in the report."""

    id: str
    title: LocalizableText
    description: Optional[LocalizableText] = None
    score: Optional[float]
    audit_refs: List[CategoryAuditRef]


class TimingEntry(BaseModel):
    """Wall time of one named step of a run."""

    name: str
    duration_ms: float


class RunTiming(BaseModel):
    total_ms: float
    entries: List[TimingEntry] = Field(default_factory=list)


class RunReport(BaseModel):
    """The aggregated output of one run."""

    run_id: str
    fetch_time: datetime
    settings: RunSettings
    # Visible results, in declared audit order
    audits: Dict[str, AuditResult]
    # Replaced audit id -> id of the audit that replaced it
    suppressed_audits: Dict[str, str] = Field(default_factory=dict)
    run_warnings: List[LocalizableText] = Field(default_factory=list)
    categories: Dict[str, CategoryResult] = Field(default_factory=dict)
    timing: RunTiming

"""
Audit schemas - static metadata, raw products and report-facing results.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pageaudit.schemas.i18n import LocalizableText


class ScoreDisplayMode(str, Enum):
    """How a score should be interpreted for display."""
    NUMERIC = "numeric"
    BINARY = "binary"
    MANUAL = "manual"
    INFORMATIVE = "informative"
    NOT_APPLICABLE = "notApplicable"
    ERROR = "error"
    METRIC_SAVINGS = "metricSavings"


# Modes whose results carry a 0-1 score; every other mode reports score=None
SCORED_MODES = frozenset({
    ScoreDisplayMode.NUMERIC,
    ScoreDisplayMode.BINARY,
    ScoreDisplayMode.METRIC_SAVINGS,
})


class GatherMode(str, Enum):
    """How the page was inspected."""
    NAVIGATION = "navigation"
    TIMESPAN = "timespan"
    SNAPSHOT = "snapshot"


class NumericUnit(str, Enum):
    """Unit tag that must accompany every numeric value."""
    BYTE = "byte"
    MILLISECOND = "millisecond"
    ELEMENT = "element"
    UNITLESS = "unitless"


class ScoreOptions(BaseModel):
    """Control points of the log-normal scoring curve."""

    model_config = ConfigDict(frozen=True)

    p10: float
    median: float


class MetricSavings(BaseModel):
    """Estimated improvement to each metric, in that metric's own unit."""

    model_config = ConfigDict(frozen=True)

    FCP: Optional[float] = None
    LCP: Optional[float] = None
    TBT: Optional[float] = None
    CLS: Optional[float] = None
    INP: Optional[float] = None

    def has_savings(self) -> bool:
        return any(
            value is not None and value > 0
            for value in (self.FCP, self.LCP, self.TBT, self.CLS, self.INP)
        )


class AuditMeta(BaseModel):
    """Static declaration of one audit."""

    model_config = ConfigDict(frozen=True)

    # Kebab-case identifier
    id: str = Field(pattern=r"^[a-z0-9]+(-[a-z0-9]+)*$")
    title: LocalizableText
    failure_title: Optional[LocalizableText] = None
    description: LocalizableText

    # Hard dependencies: a missing or errored one aborts the audit
    required_artifacts: Tuple[str, ...] = ()
    # Soft dependencies: passed through when present
    optional_artifacts: Tuple[str, ...] = ()

    score_display_mode: Optional[ScoreDisplayMode] = None
    # None means every gather mode
    supported_modes: Optional[Tuple[GatherMode, ...]] = None
    # 1-3: how much guidance the audit gives on fixing the problem
    guidance_level: Optional[int] = Field(None, ge=1, le=3)
    replaces_audits: Tuple[str, ...] = ()

    def supports(self, gather_mode: GatherMode) -> bool:
        return self.supported_modes is None or gather_mode in self.supported_modes


class AuditProduct(BaseModel):
    """
    What an audit's logic returns, before metadata is merged in.

    Only score is required. numeric_value and numeric_unit travel together;
    the executor rejects a product that sets one without the other.
    """

    model_config = ConfigDict(extra="forbid")

    score: Optional[float]
    display_value: Optional[LocalizableText] = None
    explanation: Optional[LocalizableText] = None
    error_message: Optional[LocalizableText] = None
    error_stack: Optional[str] = None
    warnings: List[LocalizableText] = Field(default_factory=list)
    not_applicable: bool = False
    details: Optional[Dict[str, Any]] = None
    run_warnings: List[LocalizableText] = Field(default_factory=list)
    metric_savings: Optional[MetricSavings] = None
    scoring_options: Optional[ScoreOptions] = None
    # Overrides the meta score_display_mode when set
    score_display_mode: Optional[ScoreDisplayMode] = None
    numeric_value: Optional[float] = None
    numeric_unit: Optional[NumericUnit] = None


class AuditResult(BaseModel):
    """A product merged with its audit's metadata, as presented in the report."""

    id: str
    title: LocalizableText
    description: LocalizableText
    score: Optional[float]
    score_display_mode: ScoreDisplayMode
    numeric_value: Optional[float] = None
    numeric_unit: Optional[NumericUnit] = None
    display_value: Optional[LocalizableText] = None
    explanation: Optional[LocalizableText] = None
    error_message: Optional[LocalizableText] = None
    error_stack: Optional[str] = None
    warnings: List[LocalizableText] = Field(default_factory=list)
    details: Optional[Dict[str, Any]] = None
    guidance_level: Optional[int] = None
    metric_savings: Optional[MetricSavings] = None
    scoring_options: Optional[ScoreOptions] = None

    @model_validator(mode="after")
    def _score_matches_mode(self) -> "AuditResult":
        if self.score_display_mode not in SCORED_MODES and self.score is not None:
            raise ValueError(
                f"{self.id}: score must be null for {self.score_display_mode.value} results"
            )
        return self

    @property
    def is_error(self) -> bool:
        return self.score_display_mode == ScoreDisplayMode.ERROR

    @property
    def is_not_applicable(self) -> bool:
        return self.score_display_mode == ScoreDisplayMode.NOT_APPLICABLE

"""
Pydantic schemas for audit metadata, products, results and run reports.
"""

from pageaudit.schemas.audit import (
    AuditMeta,
    AuditProduct,
    AuditResult,
    GatherMode,
    MetricSavings,
    NumericUnit,
    ScoreDisplayMode,
    ScoreOptions,
)
from pageaudit.schemas.i18n import IcuMessage, LocalizableText
from pageaudit.schemas.run import (
    AuditSelection,
    Category,
    CategoryAuditRef,
    CategoryResult,
    FormFactor,
    RunReport,
    RunSettings,
    RunTiming,
    ThrottlingMethod,
    TimingEntry,
)

__all__ = [
    "AuditMeta",
    "AuditProduct",
    "AuditResult",
    "GatherMode",
    "MetricSavings",
    "NumericUnit",
    "ScoreDisplayMode",
    "ScoreOptions",
    "IcuMessage",
    "LocalizableText",
    "AuditSelection",
    "Category",
    "CategoryAuditRef",
    "CategoryResult",
    "FormFactor",
    "RunReport",
    "RunSettings",
    "RunTiming",
    "ThrottlingMethod",
    "TimingEntry",
]

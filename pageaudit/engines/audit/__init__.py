"""
Audit Engine - execution, scoring, result building and aggregation.
"""

from pageaudit.engines.audit.aggregator import ResultAggregator
from pageaudit.engines.audit.executor import AuditExecutor
from pageaudit.engines.audit.registry import (
    Audit,
    AuditDefinition,
    AuditRegistry,
    filter_definitions,
)
from pageaudit.engines.audit.result_builder import (
    generate_audit_result,
    generate_error_audit_result,
    normalize_audit_score,
)
from pageaudit.engines.audit.scoring import (
    PASS_THRESHOLD,
    compute_log_normal_score,
    get_log_normal_score,
)

__all__ = [
    "ResultAggregator",
    "AuditExecutor",
    "Audit",
    "AuditDefinition",
    "AuditRegistry",
    "filter_definitions",
    "generate_audit_result",
    "generate_error_audit_result",
    "normalize_audit_score",
    "PASS_THRESHOLD",
    "compute_log_normal_score",
    "get_log_normal_score",
]

"""
Kernel - artifacts, structural equality, the computed artifact cache and the audit context.
"""

from pageaudit.kernel.artifacts import ArtifactError, is_artifact_error
from pageaudit.kernel.computed_cache import CacheStats, ComputedArtifactCache
from pageaudit.kernel.context import AuditContext
from pageaudit.kernel.equality import EqualityKeyedMap, equality_key
from pageaudit.kernel.errors import (
    AuditCancelledError,
    AuditPipelineError,
    AuditTimeoutError,
    ErroredRequiredArtifactError,
    MissingRequiredArtifactError,
    ProductContractError,
    UnknownAuditError,
)

__all__ = [
    "ArtifactError",
    "is_artifact_error",
    "CacheStats",
    "ComputedArtifactCache",
    "AuditContext",
    "EqualityKeyedMap",
    "equality_key",
    "AuditCancelledError",
    "AuditPipelineError",
    "AuditTimeoutError",
    "ErroredRequiredArtifactError",
    "MissingRequiredArtifactError",
    "ProductContractError",
    "UnknownAuditError",
]

"""
Artifacts - named values collected from one inspected page load.

The collection subsystem hands the pipeline a plain mapping of artifact name to
value. A gatherer that failed contributes an ArtifactError in place of its value.
"""

from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional


class ArtifactError(Exception):
    """Marker stored in place of an artifact whose gatherer failed."""

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


def is_artifact_error(value: Any) -> bool:
    """Whether an artifact value is an error marker rather than collected data."""
    return isinstance(value, BaseException)


def freeze_artifacts(artifacts: Mapping[str, Any]) -> Mapping[str, Any]:
    """Read-only view over a run's artifacts."""
    return MappingProxyType(dict(artifacts))


def narrow_artifacts(
    artifacts: Mapping[str, Any],
    names: Iterable[str],
) -> Mapping[str, Any]:
    """
    Keep only the named artifacts that are present.

    Audits only ever see the artifacts they declared.
    """
    narrowed: Dict[str, Any] = {}
    for name in names:
        if name in artifacts:
            narrowed[name] = artifacts[name]
    return MappingProxyType(narrowed)


def artifacts_from_payload(
    values: Mapping[str, Any],
    errors: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Build an artifact mapping from a JSON payload of values plus gatherer errors."""
    artifacts: Dict[str, Any] = dict(values)
    for name, message in (errors or {}).items():
        artifacts[name] = ArtifactError(message)
    return artifacts

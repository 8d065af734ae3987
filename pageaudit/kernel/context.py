"""
Audit Context - the immutable bundle every audit receives.
"""

import dataclasses
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pageaudit.kernel.computed_cache import ComputedArtifactCache
from pageaudit.schemas.run import RunSettings


def _empty_options() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class AuditContext:
    """
    Run-scoped settings plus the handle to the run's computed artifact cache.

    One context is created per run. Each audit gets a view of it carrying its
    own merged options; settings and computed_cache are the same objects in
    every view, so all audits share one cache.
    """

    settings: RunSettings
    computed_cache: ComputedArtifactCache
    options: Mapping[str, Any] = field(default_factory=_empty_options)

    @classmethod
    def create(cls, settings: Optional[RunSettings] = None) -> "AuditContext":
        """Fresh context with an empty cache."""
        return cls(
            settings=settings or RunSettings(),
            computed_cache=ComputedArtifactCache(),
        )

    def with_options(self, options: Mapping[str, Any]) -> "AuditContext":
        """A view of this context for one audit. The cache is shared, not copied."""
        return dataclasses.replace(self, options=MappingProxyType(dict(options)))

    def shared(self) -> "AuditContext":
        """
        The run-wide part of this context, with no audit options.

        Computed artifacts run against this view: their value is shared by every
        audit that requests it, so it must not depend on any one audit's options.
        """
        return dataclasses.replace(self, options=_empty_options())

    def close(self) -> None:
        """End of run: the cache and everything in it is discarded."""
        self.computed_cache.close()

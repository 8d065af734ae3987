"""
Base Computed Artifact - declares a derived value and how it is cached.

A computed artifact is requested with a mapping of its dependencies (usually
raw artifacts, sometimes settings). The dependencies named in `keys` form the
cache key; the whole mapping is used when `keys` is None. Requests go through
the run's computed artifact cache, so every audit asking for the same derived
value with equal inputs shares one computation.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple

from pageaudit.kernel.context import AuditContext


class ComputedArtifact(ABC):
    """
    Abstract base for computed artifacts. Subclasses are used as classes,
    never instantiated.

    Usage:
        main_record = await MainResource.request(
            {"URL": artifacts["URL"], "NetworkRecords": artifacts["NetworkRecords"]},
            context,
        )
    """

    name: ClassVar[str]
    keys: ClassVar[Optional[Tuple[str, ...]]] = None

    @classmethod
    @abstractmethod
    async def compute(cls, dependencies: Mapping[str, Any], context: AuditContext) -> Any:
        """
        Derive the value. Only called on a cache miss.

        context is the run-wide view: settings and the cache, with empty options.
        """

    @classmethod
    def cache_inputs(cls, dependencies: Mapping[str, Any]) -> Dict[str, Any]:
        """The part of the dependencies that identifies a computation."""
        if cls.keys is None:
            return dict(dependencies)
        missing = [key for key in cls.keys if key not in dependencies]
        if missing:
            raise KeyError(f"{cls.name} requires dependencies: {', '.join(missing)}")
        return {key: dependencies[key] for key in cls.keys}

    @classmethod
    async def request(cls, dependencies: Mapping[str, Any], context: AuditContext) -> Any:
        """Get the value from the run's cache, computing it on first request."""
        inputs = cls.cache_inputs(dependencies)
        shared_context = context.shared()
        return await context.computed_cache.get_or_compute(
            cls.name,
            inputs,
            lambda: cls.compute(inputs, shared_context),
        )

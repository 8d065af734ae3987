"""
Computed Artifact Cache - per-run memoization of derived artifacts.

Layout is nested: computation name -> structural input key -> entry. Each entry
is an asyncio.Task, which gives the single-flight behaviour for free:

    pending   the task is running; every caller with the same name and key
              awaits that same task
    resolved  the task finished; its value is returned immediately
    failed    the task raised; the same exception is re-raised to every
              caller, now and later, and the computation is never retried

The entry is registered before the first suspension point, so under asyncio's
cooperative scheduling no two callers can both miss and start duplicate work.
Waiters await through asyncio.shield(): a cancelled waiter never cancels the
computation other audits are waiting on.

The cache lives exactly as long as one run. It is never invalidated; close()
abandons whatever is still pending and drops every entry.
"""

import asyncio
import inspect
import time
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Dict, List, TypeVar, Union

from pageaudit.kernel.equality import EqualityKeyedMap, equality_key
from pageaudit.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

ComputeFn = Callable[[], Union[T, Awaitable[T]]]


@dataclass
class CacheStats:
    """Counters for one run's cache."""
    hits: int = 0
    misses: int = 0
    failures: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def _consume_outcome(task: "asyncio.Task[Any]") -> None:
    # Mark a failure as retrieved even if every waiter was cancelled first.
    if not task.cancelled():
        task.exception()


class ComputedArtifactCache:
    """
    Memoizes computed artifacts for a single run.

    Usage:
        cache = ComputedArtifactCache()
        timeline = await cache.get_or_compute("Timeline", trace, lambda: parse(trace))
    """

    def __init__(self) -> None:
        self._entries: Dict[str, EqualityKeyedMap["asyncio.Task[Any]"]] = {}
        self._closed = False
        self.stats = CacheStats()

    async def get_or_compute(
        self,
        name: str,
        inputs: Any,
        compute_fn: ComputeFn[T],
    ) -> T:
        """
        Return the value computed for (name, inputs), computing it at most once.

        compute_fn may return a value or an awaitable. If a computation for a
        structurally-equal input is already pending, the caller waits on it.
        """
        if self._closed:
            raise RuntimeError("Computed artifact cache is closed; the run has ended")

        key = equality_key(inputs)
        entries = self._entries.get(name)
        if entries is None:
            entries = EqualityKeyedMap()
            self._entries[name] = entries

        task = entries.get_by_key(key)
        if task is None:
            self.stats.misses += 1
            task = asyncio.ensure_future(self._compute(name, compute_fn))
            task.add_done_callback(_consume_outcome)
            entries.set_by_key(key, task)
        else:
            self.stats.hits += 1
            logger.debug("Computed artifact cache hit", extra={"computed": name})

        return await asyncio.shield(task)

    async def _compute(self, name: str, compute_fn: ComputeFn[T]) -> T:
        start = time.perf_counter()
        logger.debug("Computing artifact", extra={"computed": name})
        try:
            value = compute_fn()
            if inspect.isawaitable(value):
                value = await value
        except Exception as exc:
            self.stats.failures += 1
            logger.debug(
                "Computed artifact failed",
                extra={
                    "computed": name,
                    "error": str(exc),
                    "duration_ms": round((time.perf_counter() - start) * 1000, 1),
                },
            )
            raise
        logger.debug(
            "Computed artifact ready",
            extra={
                "computed": name,
                "duration_ms": round((time.perf_counter() - start) * 1000, 1),
            },
        )
        return value

    def names(self) -> List[str]:
        """Computation names that have at least one entry."""
        return list(self._entries)

    def entry_count(self, name: str) -> int:
        entries = self._entries.get(name)
        return len(entries) if entries is not None else 0

    def pending_count(self) -> int:
        return sum(
            1
            for entries in self._entries.values()
            for task in entries.values()
            if not task.done()
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Abandon pending computations and discard every entry."""
        if self._closed:
            return
        self._closed = True
        abandoned = 0
        for entries in self._entries.values():
            for task in entries.values():
                if not task.done():
                    task.cancel()
                    abandoned += 1
            entries.clear()
        self._entries.clear()
        logger.debug(
            "Computed artifact cache closed",
            extra={"abandoned": abandoned, **self.stats.as_dict()},
        )

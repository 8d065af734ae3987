"""
Audit Runner - drives one run from artifacts to report.

One run:
1. Select and filter the audits to execute
2. Build a single AuditContext (settings + a fresh computed artifact cache)
3. Start every audit as its own task; they interleave while awaiting shared
   computed artifacts
4. On timeout, cancel what is left and report those audits as errors
5. Discard the cache and aggregate results in declared order
"""

import asyncio
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from pageaudit.config import Settings
from pageaudit.engines.audit.aggregator import ResultAggregator
from pageaudit.engines.audit.executor import AuditExecutor
from pageaudit.engines.audit.registry import AuditDefinition, AuditRegistry, filter_definitions
from pageaudit.engines.audit.result_builder import generate_error_audit_result
from pageaudit.kernel.artifacts import freeze_artifacts
from pageaudit.kernel.context import AuditContext
from pageaudit.kernel.errors import AuditCancelledError, AuditTimeoutError
from pageaudit.logging_config import get_logger, run_id_var
from pageaudit.orchestration.state_machine import AuditStateTracker
from pageaudit.schemas.audit import AuditResult
from pageaudit.schemas.i18n import LocalizableText
from pageaudit.schemas.run import (
    AuditSelection,
    Category,
    RunReport,
    RunSettings,
    RunTiming,
    TimingEntry,
)

logger = get_logger(__name__)


class AuditRunner:
    """
    Runs a battery of audits against one page's artifacts.

    Usage:
        runner = AuditRunner(registry, timeout_seconds=60)
        report = await runner.run(artifacts, settings=RunSettings())
    """

    def __init__(
        self,
        registry: AuditRegistry,
        *,
        timeout_seconds: Optional[float] = None,
        concurrency: Optional[int] = None,
    ):
        if concurrency is not None and concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.registry = registry
        self.timeout_seconds = timeout_seconds
        self.concurrency = concurrency

    @classmethod
    def from_settings(cls, registry: AuditRegistry, settings: Settings) -> "AuditRunner":
        return cls(
            registry,
            timeout_seconds=settings.run_timeout_seconds,
            concurrency=settings.audit_concurrency,
        )

    async def run(
        self,
        artifacts: Mapping[str, Any],
        *,
        settings: Optional[RunSettings] = None,
        selection: Optional[Sequence[AuditSelection]] = None,
        categories: Sequence[Category] = (),
    ) -> RunReport:
        """
        Run registered audits.

        Args:
            artifacts: Artifact name -> value (or ArtifactError)
            settings: Run-wide settings; defaults apply when omitted
            selection: Audits to run and their options; all registered when omitted
            categories: Optional weighted groups to score

        Raises:
            UnknownAuditError: the selection names an unregistered audit
            ValueError: the selection names an audit twice
        """
        run_settings = settings or RunSettings()
        definitions = filter_definitions(self.registry.definitions(selection), run_settings)
        return await self.run_definitions(
            definitions,
            artifacts,
            settings=run_settings,
            categories=categories,
        )

    async def run_definitions(
        self,
        definitions: Sequence[AuditDefinition],
        artifacts: Mapping[str, Any],
        *,
        settings: RunSettings,
        categories: Sequence[Category] = (),
    ) -> RunReport:
        """Run exactly the given audits, in the given order."""
        audit_ids = [definition.id for definition in definitions]
        duplicates = sorted({audit_id for audit_id in audit_ids if audit_ids.count(audit_id) > 1})
        if duplicates:
            raise ValueError(f"Audits scheduled more than once: {', '.join(duplicates)}")

        run_id = str(uuid.uuid4())
        token = run_id_var.set(run_id)
        fetch_time = datetime.now(timezone.utc)
        start = time.perf_counter()
        logger.info("Starting run", extra={"audit_count": len(definitions)})

        context = AuditContext.create(settings)
        tracker = AuditStateTracker(audit_ids)
        run_artifacts = freeze_artifacts(artifacts)
        warnings_by_audit: Dict[str, List[LocalizableText]] = {audit_id: [] for audit_id in audit_ids}
        durations: Dict[str, float] = {}
        semaphore = asyncio.Semaphore(self.concurrency) if self.concurrency else None

        async def run_one(definition: AuditDefinition) -> AuditResult:
            if semaphore is None:
                return await _timed(definition)
            async with semaphore:
                return await _timed(definition)

        async def _timed(definition: AuditDefinition) -> AuditResult:
            audit_start = time.perf_counter()
            try:
                return await AuditExecutor.run(
                    definition,
                    context,
                    run_artifacts,
                    warnings_by_audit[definition.id],
                )
            finally:
                durations[definition.id] = round((time.perf_counter() - audit_start) * 1000, 1)

        results: Dict[str, AuditResult] = {}
        timed_out: Set[str] = set()
        try:
            tasks = {
                definition.id: asyncio.create_task(run_one(definition), name=f"audit:{definition.id}")
                for definition in definitions
            }
            if tasks:
                _, pending = await asyncio.wait(tasks.values(), timeout=self.timeout_seconds)
                if pending:
                    logger.warning(
                        "Run timed out; abandoning %d audit(s)",
                        len(pending),
                        extra={"timeout_seconds": self.timeout_seconds},
                    )
                    for audit_id, task in tasks.items():
                        if task in pending:
                            task.cancel()
                            timed_out.add(audit_id)
                    await asyncio.gather(*pending, return_exceptions=True)

            for definition in definitions:
                results[definition.id] = self._result_of(
                    definition,
                    tasks[definition.id],
                    timed_out=definition.id in timed_out,
                )
                tracker.record(results[definition.id])
        finally:
            cache_stats = context.computed_cache.stats.as_dict()
            context.close()
            run_id_var.reset(token)

        total_ms = round((time.perf_counter() - start) * 1000, 1)
        timing = RunTiming(
            total_ms=total_ms,
            entries=[
                TimingEntry(name=f"audit:{audit_id}", duration_ms=durations[audit_id])
                for audit_id in audit_ids
                if audit_id in durations
            ],
        )

        report = ResultAggregator.aggregate(
            run_id=run_id,
            settings=settings,
            metas=[definition.meta for definition in definitions],
            results=results,
            warnings_by_audit=warnings_by_audit,
            categories=categories,
            timing=timing,
            fetch_time=fetch_time,
        )
        logger.info(
            "Run %s finished",
            run_id,
            extra={
                "duration_ms": total_ms,
                "states": tracker.counts(),
                "computed_cache": cache_stats,
                "suppressed": len(report.suppressed_audits),
            },
        )
        return report

    def _result_of(
        self,
        definition: AuditDefinition,
        task: "asyncio.Task[AuditResult]",
        *,
        timed_out: bool,
    ) -> AuditResult:
        if timed_out:
            timeout = AuditTimeoutError(definition.id, self.timeout_seconds or 0)
            return generate_error_audit_result(definition.meta, timeout.friendly_message)
        if task.cancelled():
            cancelled = AuditCancelledError(definition.id)
            logger.warning("Audit %s was cancelled outside the run timeout", definition.id)
            return generate_error_audit_result(definition.meta, cancelled.friendly_message)
        exc = task.exception()
        if exc is not None:
            # The executor converts audit failures itself; this is a pipeline bug.
            logger.error(
                "Executor failed for audit %s",
                definition.id,
                exc_info=(type(exc), exc, exc.__traceback__),
            )
            return generate_error_audit_result(definition.meta, str(exc) or type(exc).__name__)
        return task.result()

"""
Integration tests: full runs through AuditRunner.

Verifies that audits share computed artifacts, that results come back in
declared order regardless of completion order, and that failures and
timeouts stay contained to the audit that caused them.
"""

import asyncio
from typing import Any, Mapping

import pytest

from pageaudit.engines.audit.registry import AuditRegistry
from pageaudit.engines.audit.scoring import compute_log_normal_score
from pageaudit.engines.computed.base import ComputedArtifact
from pageaudit.kernel.artifacts import ArtifactError
from pageaudit.kernel.context import AuditContext
from pageaudit.orchestration.runner import AuditRunner
from pageaudit.schemas.audit import (
    AuditMeta,
    AuditProduct,
    GatherMode,
    NumericUnit,
    ScoreDisplayMode,
    ScoreOptions,
)
from pageaudit.schemas.run import AuditSelection, Category, CategoryAuditRef, RunSettings


class Speedline(ComputedArtifact):
    """Counts its computations; slow enough for requests to overlap."""

    name = "Speedline"
    keys = ("Trace",)
    computations = 0
    seen_options = None

    @classmethod
    async def compute(cls, dependencies: Mapping[str, Any], context: AuditContext) -> dict:
        cls.computations += 1
        cls.seen_options = dict(context.options)
        await asyncio.sleep(0.01)
        frames = len(dependencies["Trace"]["events"])
        return {"frames": frames, "speed_index_ms": frames * 1000, "object": object()}


class BrokenTimeline(ComputedArtifact):
    """Always fails, after a pause so both requesters are already waiting."""

    name = "BrokenTimeline"
    keys = ("Trace",)
    computations = 0

    @classmethod
    async def compute(cls, dependencies: Mapping[str, Any], context: AuditContext) -> dict:
        cls.computations += 1
        await asyncio.sleep(0.01)
        raise ValueError("bad trace")


class AbandonedTimeline(ComputedArtifact):
    """Cancels itself instead of producing a value."""

    name = "AbandonedTimeline"
    keys = ("Trace",)

    @classmethod
    async def compute(cls, dependencies: Mapping[str, Any], context: AuditContext) -> dict:
        await asyncio.sleep(0)
        raise asyncio.CancelledError()


class SpeedIndexAudit:
    meta = AuditMeta(
        id="speed-index",
        title="Speed Index",
        description="How quickly the page is visibly populated.",
        required_artifacts=("Trace",),
        score_display_mode=ScoreDisplayMode.NUMERIC,
    )

    default_options = {"p10": 2000, "median": 4000}

    def __init__(self):
        self.seen = None

    async def audit(self, artifacts, context):
        # Deep-equal copy of the trace: must still hit the shared entry
        trace = {"events": list(artifacts["Trace"]["events"])}
        self.seen = await Speedline.request({"Trace": trace}, context)
        return AuditProduct(
            score=None,
            numeric_value=self.seen["speed_index_ms"],
            numeric_unit=NumericUnit.MILLISECOND,
            scoring_options=ScoreOptions(
                p10=context.options["p10"],
                median=context.options["median"],
            ),
            display_value=f"{self.seen['frames']} frames",
        )


class VisualProgressAudit:
    meta = AuditMeta(
        id="visual-progress",
        title="Visual progress",
        description="Frames painted during load.",
        required_artifacts=("Trace",),
        score_display_mode=ScoreDisplayMode.NUMERIC,
    )

    def __init__(self):
        self.seen = None

    async def audit(self, artifacts, context):
        self.seen = await Speedline.request({"Trace": artifacts["Trace"]}, context)
        frames = self.seen["frames"]
        return AuditProduct(
            score=min(1.0, frames / 4),
            numeric_value=frames,
            numeric_unit=NumericUnit.UNITLESS,
        )


def _requesting_audit(audit_id: str, computed: type):
    """Build an audit that only requests `computed` for the Trace artifact."""

    class RequestingAudit:
        def __init__(self):
            self.meta = AuditMeta(
                id=audit_id,
                title=audit_id,
                description=audit_id,
                required_artifacts=("Trace",),
            )

        async def audit(self, artifacts, context):
            await computed.request({"Trace": artifacts["Trace"]}, context)
            return AuditProduct(score=1)

    return RequestingAudit()


def _static_audit(audit_id: str, delay: float = 0.0, score: float = 1.0, **meta):
    """Build an audit class that waits `delay` seconds and returns `score`."""

    class StaticAudit:
        def __init__(self):
            self.meta = AuditMeta(id=audit_id, title=audit_id, description=audit_id, **meta)

        async def audit(self, artifacts, context):
            await asyncio.sleep(delay)
            return AuditProduct(score=score, run_warnings=[f"{audit_id} warning"])

    return StaticAudit()


@pytest.fixture
def trace() -> dict:
    return {"events": [{"ts": 1}, {"ts": 2}, {"ts": 3}]}


@pytest.fixture(autouse=True)
def reset_computed_counters():
    Speedline.computations = 0
    Speedline.seen_options = None
    BrokenTimeline.computations = 0
    yield
    Speedline.computations = 0
    Speedline.seen_options = None
    BrokenTimeline.computations = 0


class TestSharedComputedArtifacts:
    """Two audits requesting the same derived value."""

    @pytest.mark.asyncio
    async def test_computed_once_and_shared(self, trace):
        speed_index = SpeedIndexAudit()
        visual_progress = VisualProgressAudit()
        runner = AuditRunner(AuditRegistry([speed_index, visual_progress]))

        report = await runner.run({"Trace": trace})

        assert Speedline.computations == 1
        assert speed_index.seen is visual_progress.seen
        assert report.audits["speed-index"].display_value == "3 frames"

    @pytest.mark.asyncio
    async def test_both_scores_derive_from_the_shared_value(self, trace):
        speed_index = SpeedIndexAudit()
        visual_progress = VisualProgressAudit()
        runner = AuditRunner(AuditRegistry([speed_index, visual_progress]))

        report = await runner.run({"Trace": trace})
        shared = speed_index.seen

        speed_index_result = report.audits["speed-index"]
        assert speed_index_result.numeric_value == shared["speed_index_ms"] == 3000
        assert speed_index_result.score == pytest.approx(compute_log_normal_score(
            ScoreOptions(p10=2000, median=4000), shared["speed_index_ms"],
        ))
        assert 0.5 < speed_index_result.score < 0.9

        visual_progress_result = report.audits["visual-progress"]
        assert visual_progress_result.numeric_value == shared["frames"] == 3
        assert visual_progress_result.score == 0.75

    @pytest.mark.asyncio
    async def test_computation_does_not_see_audit_options(self, trace):
        """The shared value is computed against the run-wide context."""
        runner = AuditRunner(AuditRegistry([SpeedIndexAudit()]))

        report = await runner.run(
            {"Trace": trace},
            selection=[AuditSelection(id="speed-index", options={"median": 5000})],
        )

        assert Speedline.seen_options == {}
        assert report.audits["speed-index"].scoring_options.median == 5000

    @pytest.mark.asyncio
    async def test_shared_failure_errors_every_requester(self, trace):
        registry = AuditRegistry([
            _requesting_audit("first-consumer", BrokenTimeline),
            _requesting_audit("second-consumer", BrokenTimeline),
            _static_audit("unrelated"),
        ])

        report = await AuditRunner(registry).run({"Trace": trace})

        assert BrokenTimeline.computations == 1
        first = report.audits["first-consumer"]
        second = report.audits["second-consumer"]
        assert first.is_error and second.is_error
        assert first.error_message == second.error_message == "bad trace"
        assert report.audits["unrelated"].score == 1.0

    @pytest.mark.asyncio
    async def test_fresh_cache_per_run(self, trace):
        runner = AuditRunner(AuditRegistry([SpeedIndexAudit()]))

        await runner.run({"Trace": trace})
        await runner.run({"Trace": trace})

        assert Speedline.computations == 2

    @pytest.mark.asyncio
    async def test_different_inputs_compute_separately(self, trace):
        class OtherTraceAudit(VisualProgressAudit):
            meta = VisualProgressAudit.meta.model_copy(update={"id": "other-trace"})

            async def audit(self, artifacts, context):
                self.seen = await Speedline.request({"Trace": {"events": []}}, context)
                return AuditProduct(score=1)

        runner = AuditRunner(AuditRegistry([SpeedIndexAudit(), OtherTraceAudit()]))
        await runner.run({"Trace": trace})

        assert Speedline.computations == 2


class TestRunSemantics:
    """Ordering, isolation and run-level aggregation."""

    @pytest.mark.asyncio
    async def test_declared_order_not_completion_order(self):
        registry = AuditRegistry([
            _static_audit("slow-audit", delay=0.03),
            _static_audit("medium-audit", delay=0.01),
            _static_audit("fast-audit"),
        ])

        report = await AuditRunner(registry).run({})

        assert list(report.audits) == ["slow-audit", "medium-audit", "fast-audit"]
        assert report.run_warnings == [
            "slow-audit warning",
            "medium-audit warning",
            "fast-audit warning",
        ]
        assert [entry.name for entry in report.timing.entries] == [
            "audit:slow-audit",
            "audit:medium-audit",
            "audit:fast-audit",
        ]

    @pytest.mark.asyncio
    async def test_one_result_per_audit_despite_failures(self, trace):
        registry = AuditRegistry([
            SpeedIndexAudit(),
            _static_audit("needs-screenshots", required_artifacts=("Screenshots",)),
            _static_audit("needs-dom", required_artifacts=("DOMStats",)),
            _static_audit("healthy"),
        ])
        artifacts = {"Trace": trace, "DOMStats": ArtifactError("DOM.getDocument failed")}

        report = await AuditRunner(registry).run(artifacts)

        assert len(report.audits) == 4
        assert report.audits["needs-screenshots"].is_error
        assert report.audits["needs-dom"].is_error
        assert "DOM.getDocument failed" in report.audits["needs-dom"].error_message
        assert report.audits["healthy"].score == 1.0
        # Failed audits contribute no run warnings
        assert report.run_warnings == ["healthy warning"]

    @pytest.mark.asyncio
    async def test_timeout_errors_only_unfinished_audits(self):
        registry = AuditRegistry([
            _static_audit("hangs", delay=10),
            _static_audit("quick"),
        ])
        runner = AuditRunner(registry, timeout_seconds=0.05)

        report = await runner.run({})

        assert report.audits["quick"].score == 1.0
        assert report.audits["hangs"].is_error
        assert "timed out" in report.audits["hangs"].error_message
        assert report.run_warnings == ["quick warning"]

    @pytest.mark.asyncio
    async def test_cancellation_without_timeout_is_not_reported_as_timeout(self, trace):
        registry = AuditRegistry([
            _requesting_audit("abandoned", AbandonedTimeline),
            _static_audit("quick"),
        ])

        report = await AuditRunner(registry).run({"Trace": trace})

        abandoned = report.audits["abandoned"]
        assert abandoned.is_error
        assert "was cancelled" in abandoned.error_message
        assert "timed out" not in abandoned.error_message
        assert report.audits["quick"].score == 1.0

    @pytest.mark.asyncio
    async def test_concurrency_limit(self):
        running = 0
        peak = 0

        class CountingAudit:
            def __init__(self, audit_id):
                self.meta = AuditMeta(id=audit_id, title=audit_id, description=audit_id)

            async def audit(self, artifacts, context):
                nonlocal running, peak
                running += 1
                peak = max(peak, running)
                await asyncio.sleep(0.01)
                running -= 1
                return AuditProduct(score=1)

        registry = AuditRegistry([CountingAudit(f"audit-{i}") for i in range(6)])
        report = await AuditRunner(registry, concurrency=2).run({})

        assert len(report.audits) == 6
        assert peak == 2

    @pytest.mark.asyncio
    async def test_duplicate_selection_rejected(self):
        registry = AuditRegistry([_static_audit("only-one")])
        selection = [AuditSelection(id="only-one"), AuditSelection(id="only-one")]

        with pytest.raises(ValueError, match="more than once"):
            await AuditRunner(registry).run({}, selection=selection)

    @pytest.mark.asyncio
    async def test_gather_mode_filtering(self):
        registry = AuditRegistry([
            _static_audit("navigation-only", supported_modes=(GatherMode.NAVIGATION,)),
            _static_audit("anywhere"),
        ])
        settings = RunSettings(gather_mode=GatherMode.TIMESPAN)

        report = await AuditRunner(registry).run({}, settings=settings)

        assert list(report.audits) == ["anywhere"]
        assert report.settings.gather_mode == GatherMode.TIMESPAN

    @pytest.mark.asyncio
    async def test_categories_scored_from_visible_results(self):
        registry = AuditRegistry([
            _static_audit("good", score=1.0),
            _static_audit("bad", score=0.0),
            _static_audit("legacy-check", score=0.0),
            _static_audit("modern-check", score=1.0, replaces_audits=("legacy-check",)),
        ])
        category = Category(
            id="best-practices",
            title="Best Practices",
            audit_refs=[
                CategoryAuditRef(id="good", weight=1),
                CategoryAuditRef(id="bad", weight=1),
                CategoryAuditRef(id="legacy-check", weight=1),
                CategoryAuditRef(id="modern-check", weight=2),
            ],
        )

        report = await AuditRunner(registry).run({}, categories=[category])

        assert "legacy-check" not in report.audits
        assert report.suppressed_audits == {"legacy-check": "modern-check"}
        assert report.categories["best-practices"].score == 0.75


class TestBuiltinRun:
    """A full run of the built-in audits over sample artifacts."""

    @pytest.mark.asyncio
    async def test_full_run(self, registry, sample_artifacts, run_settings):
        report = await AuditRunner(registry, timeout_seconds=5).run(
            sample_artifacts, settings=run_settings,
        )

        assert list(report.audits) == registry.ids()
        assert report.audits["document-title"].score == 1.0
        assert report.audits["dom-size"].score == 1.0
        assert report.audits["server-response-time"].score == 0.0
        assert report.audits["redirects"].score == 0.0
        assert report.audits["network-requests"].score is None
        assert not any(result.is_error for result in report.audits.values())

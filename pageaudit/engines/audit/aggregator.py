"""
Result Aggregator - assembles per-audit results into a run report.

Responsibilities:
- Keep results in declared audit order, whatever order they finished in
- Hide audits replaced by another audit that also ran
- Merge run-level warnings
- Score categories as weighted means of their audits
"""

from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence

from pageaudit.engines.audit.scoring import clamp_to_2_decimals
from pageaudit.schemas.audit import AuditMeta, AuditResult, ScoreDisplayMode
from pageaudit.schemas.i18n import LocalizableText
from pageaudit.schemas.run import (
    Category,
    CategoryResult,
    RunReport,
    RunSettings,
    RunTiming,
)

# Results in these modes never pull a category score down
_UNWEIGHTED_MODES = frozenset({
    ScoreDisplayMode.NOT_APPLICABLE,
    ScoreDisplayMode.INFORMATIVE,
    ScoreDisplayMode.MANUAL,
})


class ResultAggregator:
    """Builds the externally visible report from raw per-audit results."""

    @classmethod
    def find_suppressed(
        cls,
        metas: Sequence[AuditMeta],
        results: Mapping[str, AuditResult],
    ) -> Dict[str, str]:
        """
        Map each replaced audit id to the id of the audit that replaced it.

        Only applies when both audits produced a result. Walks in declared
        order, and an audit that was itself suppressed cannot suppress others.
        """
        suppressed: Dict[str, str] = {}
        for meta in metas:
            if meta.id not in results or meta.id in suppressed:
                continue
            for replaced_id in meta.replaces_audits:
                if (
                    replaced_id != meta.id
                    and replaced_id in results
                    and replaced_id not in suppressed
                ):
                    suppressed[replaced_id] = meta.id
        return suppressed

    @classmethod
    def merge_run_warnings(
        cls,
        metas: Sequence[AuditMeta],
        warnings_by_audit: Mapping[str, Sequence[LocalizableText]],
    ) -> List[LocalizableText]:
        """Concatenate warnings in declared audit order, each audit's in emission order."""
        merged: List[LocalizableText] = []
        for meta in metas:
            merged.extend(warnings_by_audit.get(meta.id, ()))
        return merged

    @classmethod
    def score_category(
        cls,
        category: Category,
        results: Mapping[str, AuditResult],
    ) -> CategoryResult:
        """
        Weighted arithmetic mean of member scores.

        Not-applicable, informative and manual members weigh nothing; errored
        members count as 0. Members that did not run are left out.
        """
        refs = [ref for ref in category.audit_refs if ref.id in results]
        weighted_sum = 0.0
        total_weight = 0.0
        for ref in refs:
            result = results[ref.id]
            weight = 0.0 if result.score_display_mode in _UNWEIGHTED_MODES else ref.weight
            if weight <= 0:
                continue
            weighted_sum += (result.score or 0.0) * weight
            total_weight += weight

        score = clamp_to_2_decimals(weighted_sum / total_weight) if total_weight else 0.0
        return CategoryResult(
            id=category.id,
            title=category.title,
            description=category.description,
            score=score,
            audit_refs=refs,
        )

    @classmethod
    def aggregate(
        cls,
        *,
        run_id: str,
        settings: RunSettings,
        metas: Sequence[AuditMeta],
        results: Mapping[str, AuditResult],
        warnings_by_audit: Optional[Mapping[str, Sequence[LocalizableText]]] = None,
        categories: Sequence[Category] = (),
        timing: Optional[RunTiming] = None,
        fetch_time: Optional[datetime] = None,
    ) -> RunReport:
        """
        Assemble the report.

        Args:
            metas: Metadata of every scheduled audit, in declared order
            results: Result per audit id
            warnings_by_audit: Run-level warnings each audit emitted
        """
        suppressed = cls.find_suppressed(metas, results)
        visible: Dict[str, AuditResult] = {
            meta.id: results[meta.id]
            for meta in metas
            if meta.id in results and meta.id not in suppressed
        }

        return RunReport(
            run_id=run_id,
            fetch_time=fetch_time or datetime.now(timezone.utc),
            settings=settings,
            audits=visible,
            suppressed_audits=suppressed,
            run_warnings=cls.merge_run_warnings(metas, warnings_by_audit or {}),
            categories={
                category.id: cls.score_category(category, visible)
                for category in categories
            },
            timing=timing or RunTiming(total_ms=0.0),
        )

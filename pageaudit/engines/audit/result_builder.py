"""
Result Builder - merges an audit's product with its metadata into a result.
"""

import math
from typing import Optional

from pageaudit.engines.audit.scoring import (
    PASS_THRESHOLD,
    clamp_to_2_decimals,
    compute_log_normal_score,
)
from pageaudit.kernel.errors import ProductContractError
from pageaudit.schemas.audit import (
    SCORED_MODES,
    AuditMeta,
    AuditProduct,
    AuditResult,
    ScoreDisplayMode,
)
from pageaudit.schemas.i18n import LocalizableText


def normalize_audit_score(
    score: Optional[float],
    score_display_mode: ScoreDisplayMode,
    audit_id: str,
) -> Optional[float]:
    """
    Validate and round a score for its display mode.

    Unscored modes always yield None. Scored modes need a finite score in [0, 1].
    """
    if score_display_mode not in SCORED_MODES:
        return None

    if score is None or not math.isfinite(score):
        raise ProductContractError(f"Invalid score for {audit_id}: {score}")
    if score > 1:
        raise ProductContractError(f"Audit score for {audit_id} is > 1")
    if score < 0:
        raise ProductContractError(f"Audit score for {audit_id} is < 0")

    return clamp_to_2_decimals(score)


def resolve_score_display_mode(meta: AuditMeta, product: AuditProduct) -> ScoreDisplayMode:
    """
    Final display mode: not-applicable wins, then error, then the product's
    own mode, then the meta's, then binary.
    """
    if product.not_applicable:
        return ScoreDisplayMode.NOT_APPLICABLE
    if product.error_message is not None:
        return ScoreDisplayMode.ERROR
    if product.score_display_mode is not None:
        return product.score_display_mode
    if meta.score_display_mode is not None:
        return meta.score_display_mode
    if product.scoring_options is not None and product.numeric_value is not None:
        return ScoreDisplayMode.NUMERIC
    return ScoreDisplayMode.BINARY


def generate_audit_result(meta: AuditMeta, product: AuditProduct) -> AuditResult:
    """
    Build the report-facing result for a validated product.

    Raises:
        ProductContractError: the score does not fit the resolved display mode
        ValueError: the product's scoring options cannot define a curve
    """
    score_display_mode = resolve_score_display_mode(meta, product)
    score = product.score

    if (
        score is None
        and score_display_mode in SCORED_MODES
        and product.scoring_options is not None
        and product.numeric_value is not None
    ):
        score = compute_log_normal_score(product.scoring_options, product.numeric_value)

    if score_display_mode == ScoreDisplayMode.METRIC_SAVINGS:
        if score is not None and score >= PASS_THRESHOLD:
            score = 1.0
        elif product.metric_savings is not None and product.metric_savings.has_savings():
            score = 0.0
        else:
            score = 0.5

    normalized_score = normalize_audit_score(score, score_display_mode, meta.id)

    title: LocalizableText = meta.title
    if (
        meta.failure_title is not None
        and normalized_score is not None
        and normalized_score < PASS_THRESHOLD
    ):
        title = meta.failure_title

    return AuditResult(
        id=meta.id,
        title=title,
        description=meta.description,
        score=normalized_score,
        score_display_mode=score_display_mode,
        numeric_value=product.numeric_value,
        numeric_unit=product.numeric_unit,
        display_value=product.display_value,
        explanation=product.explanation,
        error_message=product.error_message,
        error_stack=product.error_stack,
        warnings=list(product.warnings),
        details=product.details,
        guidance_level=meta.guidance_level,
        metric_savings=product.metric_savings,
        scoring_options=product.scoring_options,
    )


def generate_error_audit_result(
    meta: AuditMeta,
    error_message: LocalizableText,
    error_stack: Optional[str] = None,
) -> AuditResult:
    """Result for an audit that could not produce a product."""
    return generate_audit_result(
        meta,
        AuditProduct(score=None, error_message=error_message, error_stack=error_stack),
    )

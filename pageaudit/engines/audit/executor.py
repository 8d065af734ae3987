"""
Audit Executor - runs a single audit and always comes back with a result.

Steps:
1. Required artifacts must be present and not error markers, or the audit's
   logic is never called
2. The logic runs with only its declared artifacts and a context carrying its
   merged options; it may await computed artifacts through the shared cache
3. Whatever it raises becomes an error result for this audit alone
4. The product must honour the numeric_value/numeric_unit pairing
5. not_applicable overrides every other display mode
6. Metadata is merged in to build the result
"""

import inspect
import math
import time
import traceback
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError

from pageaudit.engines.audit.registry import AuditDefinition
from pageaudit.engines.audit.result_builder import (
    generate_audit_result,
    generate_error_audit_result,
)
from pageaudit.kernel.artifacts import is_artifact_error, narrow_artifacts
from pageaudit.kernel.context import AuditContext
from pageaudit.kernel.errors import (
    AuditPipelineError,
    ErroredRequiredArtifactError,
    MissingRequiredArtifactError,
    ProductContractError,
)
from pageaudit.logging_config import get_logger
from pageaudit.schemas.audit import AuditMeta, AuditProduct, AuditResult
from pageaudit.schemas.i18n import LocalizableText, text_of

logger = get_logger(__name__)


def _error_stack(exc: BaseException) -> str:
    """Stack of the error closest to the failure: the cause when there is one."""
    target = exc.__cause__ or exc
    return "".join(
        traceback.format_exception(type(target), target, target.__traceback__)
    ).rstrip()


class AuditExecutor:
    """
    Executes audits one at a time against a run's artifacts.

    Usage:
        result = await AuditExecutor.run(definition, context, artifacts)
    """

    @classmethod
    def check_required_artifacts(
        cls,
        meta: AuditMeta,
        artifacts: Mapping[str, Any],
    ) -> None:
        """
        Raises:
            MissingRequiredArtifactError: a required artifact was not collected
            ErroredRequiredArtifactError: a required artifact is an error marker
        """
        for name in meta.required_artifacts:
            if name not in artifacts:
                logger.warning(
                    "%s gatherer, required by audit %s, did not run.",
                    name,
                    meta.id,
                )
                raise MissingRequiredArtifactError(name)

            value = artifacts[name]
            if is_artifact_error(value):
                logger.warning(
                    "%s gatherer, required by audit %s, encountered an error: %s",
                    name,
                    meta.id,
                    value,
                )
                raise ErroredRequiredArtifactError(name, str(value)) from value

    @classmethod
    def coerce_product(cls, audit_id: str, raw: Any) -> AuditProduct:
        """Accept an AuditProduct or a mapping shaped like one."""
        if isinstance(raw, AuditProduct):
            return raw
        if isinstance(raw, Mapping):
            try:
                return AuditProduct.model_validate(dict(raw))
            except ValidationError as exc:
                raise ProductContractError(
                    f"Audit {audit_id} returned an invalid product: {exc}"
                ) from exc
        raise ProductContractError(
            f"Audit {audit_id} returned {type(raw).__name__}, expected a product"
        )

    @classmethod
    def validate_product(cls, audit_id: str, product: AuditProduct) -> None:
        """
        Raises:
            ProductContractError: numeric_value and numeric_unit are not paired,
                or numeric_value is not finite
        """
        has_value = product.numeric_value is not None
        has_unit = product.numeric_unit is not None
        if has_value and not has_unit:
            raise ProductContractError(
                f"Audit {audit_id} reported a numeric_value without a numeric_unit"
            )
        if has_unit and not has_value:
            raise ProductContractError(
                f"Audit {audit_id} reported a numeric_unit without a numeric_value"
            )
        if has_value and not math.isfinite(product.numeric_value):
            raise ProductContractError(
                f"Audit {audit_id} reported a non-finite numeric_value: {product.numeric_value}"
            )

    @classmethod
    async def run(
        cls,
        definition: AuditDefinition,
        context: AuditContext,
        artifacts: Mapping[str, Any],
        run_warnings: Optional[List[LocalizableText]] = None,
    ) -> AuditResult:
        """
        Run one audit to a terminal result. Never raises for audit-level failures.

        Args:
            definition: The audit and its configured options
            context: The run's shared context; a per-audit view is derived from it
            artifacts: Every artifact collected for the run
            run_warnings: If given, the product's run-level warnings are appended

        Returns:
            A scored, not-applicable or error result
        """
        meta = definition.meta
        start = time.perf_counter()
        logger.debug("Auditing: %s", text_of(meta.title), extra={"audit_id": meta.id})

        try:
            cls.check_required_artifacts(meta, artifacts)

            audit_context = context.with_options(definition.merged_options())
            narrowed = narrow_artifacts(
                artifacts,
                meta.required_artifacts + meta.optional_artifacts,
            )

            raw = definition.implementation.audit(narrowed, audit_context)
            if inspect.isawaitable(raw):
                raw = await raw

            product = cls.coerce_product(meta.id, raw)
            cls.validate_product(meta.id, product)
            result = generate_audit_result(meta, product)
            if run_warnings is not None:
                run_warnings.extend(product.run_warnings)
        except Exception as exc:
            if not isinstance(exc, (MissingRequiredArtifactError, ErroredRequiredArtifactError)):
                logger.warning(
                    "Caught exception in audit %s: %s",
                    meta.id,
                    exc,
                    extra={"audit_id": meta.id, "error_type": type(exc).__name__},
                )
            if isinstance(exc, AuditPipelineError):
                error_message = exc.friendly_message
            else:
                error_message = str(exc) or type(exc).__name__
            result = generate_error_audit_result(meta, error_message, _error_stack(exc))

        logger.debug(
            "Audit finished",
            extra={
                "audit_id": meta.id,
                "score": result.score,
                "score_display_mode": result.score_display_mode.value,
                "duration_ms": round((time.perf_counter() - start) * 1000, 1),
            },
        )
        return result

"""
Error taxonomy for the audit pipeline.

Every exception raised while executing a single audit is converted into an
error result by the executor; none of these escape a run.
"""

from typing import Optional


class AuditPipelineError(Exception):
    """Base class for pipeline errors. Carries a stable machine-readable code."""

    code = "AUDIT_PIPELINE_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        if code:
            self.code = code

    @property
    def friendly_message(self) -> str:
        return str(self)


class MissingRequiredArtifactError(AuditPipelineError):
    """A required artifact was not collected for this run."""

    code = "MISSING_REQUIRED_ARTIFACT"

    def __init__(self, artifact_name: str):
        super().__init__(f"Required {artifact_name} gatherer did not run.")
        self.artifact_name = artifact_name


class ErroredRequiredArtifactError(AuditPipelineError):
    """A required artifact was collected as an error marker instead of a value."""

    code = "ERRORED_REQUIRED_ARTIFACT"

    def __init__(self, artifact_name: str, error_message: str):
        super().__init__(
            f"Required {artifact_name} gatherer encountered an error: {error_message}"
        )
        self.artifact_name = artifact_name


class ProductContractError(AuditPipelineError):
    """An audit returned a product that breaks the product contract."""

    code = "PRODUCT_CONTRACT_VIOLATION"


class AuditTimeoutError(AuditPipelineError):
    """The run ended before this audit finished."""

    code = "AUDIT_TIMEOUT"

    def __init__(self, audit_id: str, timeout_seconds: float):
        super().__init__(
            f"Audit {audit_id} did not complete before the run timed out "
            f"after {timeout_seconds:g}s."
        )
        self.audit_id = audit_id


class AuditCancelledError(AuditPipelineError):
    """The audit was cancelled by something other than the run timeout."""

    code = "AUDIT_CANCELLED"

    def __init__(self, audit_id: str):
        super().__init__(f"Audit {audit_id} was cancelled before it completed.")
        self.audit_id = audit_id


class UnknownAuditError(AuditPipelineError, KeyError):
    """Requested audit id is not registered."""

    code = "UNKNOWN_AUDIT"

    def __init__(self, audit_id: str):
        AuditPipelineError.__init__(self, f"Unknown audit: {audit_id}")
        self.audit_id = audit_id

    def __str__(self) -> str:
        return self.args[0]

"""
deploychain.core.exceptions - Custom Exception Hierarchy
==========================================================

This module defines a structured exception hierarchy for DeployChain.
Components raise and catch specific exception types that carry contextual
information instead of bare strings.

Exception Hierarchy:
    DeployChainError (base)
        ├── ConfigurationError         - Invalid config, missing required values
        ├── SubmissionValidationError  - Malformed submission (no record created)
        ├── StageError                 - A pipeline stage aborted the run
        │     ├── SourceFetchError     - Source tree could not be fetched
        │     ├── ClassificationError  - Tree is not a recognized project
        │     ├── CompilationError     - Build tooling failed
        │     └── PublishError         - A publish call failed for one artifact
        ├── PublisherError             - Publisher adapter transport/API failure
        ├── PersistenceError           - Record store read/write failure
        │     └── RecordNotFoundError  - Unknown deployment identifier
        └── InvalidTransitionError     - Status state machine violation

Error Handling Flow:
    Adapter raises PublisherError / OSError / ...
        → Orchestrator normalises it into the stage's StageError subclass
        → Orchestrator writes the record as FAILED with the error message
        → Nothing is raised to the submitter (they poll the record)

Usage:
    >>> from deploychain.core.exceptions import ClassificationError
    >>> raise ClassificationError("not a recognized project")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from deploychain.core.enums import PipelineStage

if TYPE_CHECKING:
    from deploychain.core.models import PublishOutcome


# =============================================================================
# Base Exception
# =============================================================================
# All DeployChain exceptions inherit from this base class. This allows
# catching all framework-specific errors with a single except clause:
#
#   try:
#       await store.update(record)
#   except DeployChainError as e:
#       logger.error(e.message, error_code=e.error_code, details=e.details)
# =============================================================================
class DeployChainError(Exception):
    """Base exception for all DeployChain errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code for programmatic handling.
            Convention: UPPER_SNAKE_CASE (e.g., "PUBLISH_FAILED").
        details: Arbitrary dict with additional debugging context.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize this exception to a dictionary.

        Returns:
            Dictionary with error_type, message, error_code, and details.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ConfigurationError(DeployChainError):
    """Raised when DeployChain configuration is invalid or missing.

    Example:
        >>> raise ConfigurationError(
        ...     message="Unknown publisher backend: 'ipfs'",
        ...     details={"backend": "ipfs"},
        ... )
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Submission Validation Error
# =============================================================================
# The only error a submitter ever sees synchronously (besides a record store
# failure while creating the pending record). No record exists when it fires.
# =============================================================================
class SubmissionValidationError(DeployChainError):
    """Raised when a deployment submission or webhook payload is malformed.

    Attributes:
        field_errors: Per-field messages, as reported by Pydantic.
    """

    def __init__(
        self,
        message: str,
        field_errors: Optional[list[dict[str, Any]]] = None,
        error_code: str = "INVALID_SUBMISSION",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["field_errors"] = field_errors or []

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.field_errors = field_errors or []


# =============================================================================
# Stage Errors
# =============================================================================
# Raised inside a pipeline run. The orchestrator catches every StageError,
# turns it into a FAILED record, and never lets it escape run_pipeline().
# =============================================================================
class StageError(DeployChainError):
    """Base class for errors that abort a pipeline run at a given stage.

    Attributes:
        stage: The pipeline stage that failed.
    """

    def __init__(
        self,
        message: str,
        stage: PipelineStage,
        error_code: str = "STAGE_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["stage"] = stage.value

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.stage = stage


class SourceFetchError(StageError):
    """Raised when the source tree cannot be fetched at the requested revision."""

    def __init__(
        self,
        message: str,
        error_code: str = "SOURCE_FETCH_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            stage=PipelineStage.FETCH,
            error_code=error_code,
            details=details,
        )


class ClassificationError(StageError):
    """Raised when the fetched tree is not a recognized project.

    Classification runs before compilation, so this error means no build
    resources were spent on the run.
    """

    def __init__(
        self,
        message: str = "not a recognized project",
        error_code: str = "NOT_RECOGNIZED_PROJECT",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            stage=PipelineStage.CLASSIFY,
            error_code=error_code,
            details=details,
        )


class CompilationError(StageError):
    """Raised when the build tooling fails or produces no artifacts."""

    def __init__(
        self,
        message: str,
        error_code: str = "COMPILATION_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            stage=PipelineStage.COMPILE,
            error_code=error_code,
            details=details,
        )


class PublishError(StageError):
    """Raised when a publish call errors for one artifact.

    Remaining artifacts are not attempted. The partial outcome gathered from
    the artifacts that published before the failure travels with the error
    so that the failed record can still show them.

    Attributes:
        artifact_name: Name of the artifact whose publish call failed.
        outcome: Partial PublishOutcome for artifacts processed before it.
    """

    def __init__(
        self,
        message: str,
        artifact_name: str,
        outcome: Optional["PublishOutcome"] = None,
        error_code: str = "PUBLISH_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["artifact_name"] = artifact_name

        super().__init__(
            message=message,
            stage=PipelineStage.PUBLISH,
            error_code=error_code,
            details=enriched_details,
        )

        self.artifact_name = artifact_name
        self.outcome = outcome


# =============================================================================
# Publisher Error
# =============================================================================
# Raised by publisher adapters. The reconciler wraps it into a PublishError
# that names the offending artifact.
# =============================================================================
class PublisherError(DeployChainError):
    """Raised when the publish environment rejects a call or is unreachable.

    Attributes:
        status_code: HTTP status code, when the failure came from a response.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: str = "PUBLISHER_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        if status_code is not None:
            enriched_details["status_code"] = status_code

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.status_code = status_code


# =============================================================================
# Persistence Errors
# =============================================================================
class PersistenceError(DeployChainError):
    """Raised when a record store operation fails.

    A failure on the final write of a run is logged and not retried; the
    run's in-memory outcome is lost for that record.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "PERSISTENCE_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


class RecordNotFoundError(PersistenceError):
    """Raised when a deployment identifier is unknown to the record store."""

    def __init__(
        self,
        deployment_id: Any,
        error_code: str = "RECORD_NOT_FOUND",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["deployment_id"] = deployment_id

        super().__init__(
            message=f"Deployment {deployment_id} not found",
            error_code=error_code,
            details=enriched_details,
        )

        self.deployment_id = deployment_id


class InvalidTransitionError(DeployChainError):
    """Raised when a status change would break the deployment state machine.

    Example:
        >>> raise InvalidTransitionError(
        ...     message="Cannot move deployment 7 from deployed to building",
        ...     details={"from": "deployed", "to": "building"},
        ... )
    """

    def __init__(
        self,
        message: str,
        error_code: str = "INVALID_TRANSITION",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)

"""
Tests for deploychain.core.exceptions
=======================================

These tests verify the exception hierarchy:
    - Every error is a DeployChainError with a machine-readable error_code
    - Stage errors carry their pipeline stage
    - PublishError names the artifact and carries the partial outcome
    - to_dict() serialization
"""

import pytest

from deploychain.core.enums import PipelineStage
from deploychain.core.exceptions import (
    ClassificationError,
    CompilationError,
    ConfigurationError,
    DeployChainError,
    InvalidTransitionError,
    PersistenceError,
    PublishError,
    PublisherError,
    RecordNotFoundError,
    SourceFetchError,
    StageError,
    SubmissionValidationError,
)
from deploychain.core.models import PublishOutcome


class TestExceptionHierarchy:
    """Tests for base classes and default codes."""

    @pytest.mark.parametrize(
        "error,code",
        [
            (ConfigurationError("bad"), "CONFIG_ERROR"),
            (SubmissionValidationError("bad"), "INVALID_SUBMISSION"),
            (SourceFetchError("clone failed"), "SOURCE_FETCH_FAILED"),
            (ClassificationError(), "NOT_RECOGNIZED_PROJECT"),
            (CompilationError("solc failed"), "COMPILATION_FAILED"),
            (PublishError("reverted", artifact_name="Token"), "PUBLISH_FAILED"),
            (PublisherError("502"), "PUBLISHER_ERROR"),
            (PersistenceError("down"), "PERSISTENCE_ERROR"),
            (RecordNotFoundError(3), "RECORD_NOT_FOUND"),
            (InvalidTransitionError("nope"), "INVALID_TRANSITION"),
        ],
    )
    def test_default_error_codes(self, error: DeployChainError, code: str) -> None:
        assert isinstance(error, DeployChainError)
        assert error.error_code == code

    @pytest.mark.parametrize(
        "error,stage",
        [
            (SourceFetchError("x"), PipelineStage.FETCH),
            (ClassificationError(), PipelineStage.CLASSIFY),
            (CompilationError("x"), PipelineStage.COMPILE),
            (PublishError("x", artifact_name="Token"), PipelineStage.PUBLISH),
        ],
    )
    def test_stage_errors_carry_stage(self, error: StageError, stage: PipelineStage) -> None:
        assert isinstance(error, StageError)
        assert error.stage == stage
        assert error.details["stage"] == stage.value

    def test_record_not_found_is_persistence_error(self) -> None:
        error = RecordNotFoundError(42)
        assert isinstance(error, PersistenceError)
        assert error.deployment_id == 42
        assert "42" in error.message


class TestErrorDetails:
    """Tests for contextual error information."""

    def test_classification_default_message(self) -> None:
        assert "not a recognized project" in ClassificationError().message

    def test_publish_error_carries_outcome(self) -> None:
        outcome = PublishOutcome(placements={"A": "0xa"}, transaction_ids=["0x1"])
        error = PublishError("reverted", artifact_name="B", outcome=outcome)
        assert error.artifact_name == "B"
        assert error.details["artifact_name"] == "B"
        assert error.outcome is outcome

    def test_publisher_error_status_code(self) -> None:
        error = PublisherError("bad gateway", status_code=502)
        assert error.status_code == 502
        assert error.details["status_code"] == 502

    def test_submission_error_field_errors(self) -> None:
        errors = [{"field": "branch", "message": "Field required"}]
        error = SubmissionValidationError("bad", field_errors=errors)
        assert error.field_errors == errors
        assert error.details["field_errors"] == errors

    def test_to_dict(self) -> None:
        error = CompilationError("solc failed", details={"returncode": 1})
        data = error.to_dict()
        assert data["error_type"] == "CompilationError"
        assert data["message"] == "solc failed"
        assert data["error_code"] == "COMPILATION_FAILED"
        assert data["details"] == {"returncode": 1, "stage": "compile"}

    def test_repr_includes_code(self) -> None:
        assert "PUBLISHER_ERROR" in repr(PublisherError("x"))

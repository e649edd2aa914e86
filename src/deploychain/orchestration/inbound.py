"""
deploychain.orchestration.inbound - Inbound Payload Translation
=================================================================

Two inbound paths converge on the same DeploymentRequest:

    Direct submission                       Push notification
    {"repo_url": "...",                     {"repository": {"clone_url": "..."},
     "branch": "main",                       "ref": "refs/heads/main"}
     "project_name": "demo"}
            │                                          │
            │ parse_submission()                       │ request_from_push_event()
            ▼                                          ▼
        DeploymentRequest(source_location, revision, project_name)

A push event has no project name of its own; the clone URL is used for it.
Malformed payloads raise SubmissionValidationError and never create a record.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ValidationError

from deploychain.core.exceptions import SubmissionValidationError
from deploychain.core.models import DeploymentRequest, PushEvent


class _DirectSubmission(BaseModel):
    """Wire shape of a direct deployment request."""

    repo_url: str
    branch: str
    project_name: str


def _field_errors(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]


def parse_submission(payload: Mapping[str, Any]) -> DeploymentRequest:
    """Validate a direct submission payload.

    Args:
        payload: ``{"repo_url", "branch", "project_name"}``.

    Raises:
        SubmissionValidationError: If a field is missing, of the wrong type,
            or blank.
    """
    try:
        submission = _DirectSubmission.model_validate(payload)
        return DeploymentRequest(
            source_location=submission.repo_url,
            revision=submission.branch,
            project_name=submission.project_name,
        )
    except ValidationError as exc:
        raise SubmissionValidationError(
            message="Invalid deployment submission",
            field_errors=_field_errors(exc),
        ) from exc


def request_from_push_event(payload: Mapping[str, Any]) -> DeploymentRequest:
    """Translate a push notification into a deployment request.

    The branch is the ref with its ``refs/heads/`` prefix stripped and the
    clone URL doubles as project name.

    Raises:
        SubmissionValidationError: If the payload lacks a clone URL or ref.
    """
    try:
        event = PushEvent.model_validate(payload)
        return DeploymentRequest(
            source_location=event.repository.clone_url,
            revision=event.branch,
            project_name=event.repository.clone_url,
        )
    except ValidationError as exc:
        raise SubmissionValidationError(
            message="Invalid push event payload",
            field_errors=_field_errors(exc),
        ) from exc

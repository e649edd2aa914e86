"""
deploychain.core.state - Deployment Status State Machine
==========================================================

This module owns the rules for moving a DeploymentRecord between statuses.

State Lifecycle:
    PENDING → BUILDING → DEPLOYED
       │          │
       └──────────┴────→ FAILED

    - No state is re-entered once left.
    - DEPLOYED and FAILED are terminal.
    - FAILED is reachable from every non-terminal state.

Design Decision - Immutable Snapshots:
    DeploymentRecord is frozen. transition() never mutates its argument;
    it returns a new record with the status, the requested field changes,
    and a fresh updated_at. The orchestrator persists the latest snapshot.

Usage:
    >>> building = transition(pending_record, DeploymentStatus.BUILDING)
    >>> failed = transition(building, DeploymentStatus.FAILED,
    ...                     error_message="not a recognized project")
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any

from deploychain.core.enums import DeploymentStatus
from deploychain.core.exceptions import InvalidTransitionError
from deploychain.core.models import DeploymentRecord


ALLOWED_TRANSITIONS: dict[DeploymentStatus, frozenset[DeploymentStatus]] = {
    DeploymentStatus.PENDING: frozenset(
        {DeploymentStatus.BUILDING, DeploymentStatus.FAILED}
    ),
    DeploymentStatus.BUILDING: frozenset(
        {DeploymentStatus.DEPLOYED, DeploymentStatus.FAILED}
    ),
    DeploymentStatus.DEPLOYED: frozenset(),
    DeploymentStatus.FAILED: frozenset(),
}


def is_terminal(status: DeploymentStatus) -> bool:
    """Return True for statuses with no outgoing transitions."""
    return not ALLOWED_TRANSITIONS[status]


def can_transition(current: DeploymentStatus, target: DeploymentStatus) -> bool:
    """Check whether ``current → target`` is a legal move."""
    return target in ALLOWED_TRANSITIONS[current]


def transition(
    record: DeploymentRecord,
    target: DeploymentStatus,
    **changes: Any,
) -> DeploymentRecord:
    """Produce the next snapshot of a record in ``target`` status.

    Args:
        record: The current snapshot.
        target: The status to move to.
        **changes: Other fields to set on the new snapshot (url, placements,
            error_message, ...).

    Returns:
        A new DeploymentRecord; ``record`` is left untouched.

    Raises:
        InvalidTransitionError: If the move is not allowed, or the new
            snapshot would break the DEPLOYED/FAILED invariants.
    """
    if not can_transition(record.status, target):
        raise InvalidTransitionError(
            message=(
                f"Cannot move deployment {record.deployment_id} "
                f"from {record.status.value} to {target.value}"
            ),
            details={
                "deployment_id": record.deployment_id,
                "from": record.status.value,
                "to": target.value,
            },
        )

    updated = record.model_copy(
        update={
            **copy.deepcopy(changes),
            "status": target,
            "updated_at": datetime.now(timezone.utc),
        },
        deep=True,
    )

    if target == DeploymentStatus.DEPLOYED and not updated.url:
        raise InvalidTransitionError(
            message=f"Deployment {record.deployment_id} cannot be deployed without a URL",
            details={"deployment_id": record.deployment_id, "to": target.value},
        )
    if target == DeploymentStatus.FAILED and not updated.error_message:
        raise InvalidTransitionError(
            message=f"Deployment {record.deployment_id} cannot fail without an error message",
            details={"deployment_id": record.deployment_id, "to": target.value},
        )

    return updated

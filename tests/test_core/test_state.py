"""
Tests for deploychain.core.state
==================================

These tests verify the deployment status state machine:
    - Legal moves: pending → building → deployed | failed, pending → failed
    - Illegal moves: leaving a terminal state, skipping building, re-entering
    - transition() returns a new snapshot and leaves the input untouched
    - DEPLOYED requires a URL, FAILED requires an error message
"""

import pytest

from deploychain.core.enums import DeploymentStatus
from deploychain.core.exceptions import InvalidTransitionError
from deploychain.core.models import DeploymentRecord
from deploychain.core.state import can_transition, is_terminal, transition


def _make_record(status: DeploymentStatus = DeploymentStatus.PENDING, **kwargs) -> DeploymentRecord:
    """Create a persisted-looking DeploymentRecord for testing."""
    return DeploymentRecord(
        deployment_id=1,
        project_name="demo",
        target_environment="sepolia",
        status=status,
        **kwargs,
    )


# =============================================================================
# Test: Transition Table
# =============================================================================
class TestTransitionTable:
    """Tests for can_transition() and is_terminal()."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (DeploymentStatus.PENDING, DeploymentStatus.BUILDING),
            (DeploymentStatus.PENDING, DeploymentStatus.FAILED),
            (DeploymentStatus.BUILDING, DeploymentStatus.DEPLOYED),
            (DeploymentStatus.BUILDING, DeploymentStatus.FAILED),
        ],
    )
    def test_allowed(self, current: DeploymentStatus, target: DeploymentStatus) -> None:
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (DeploymentStatus.PENDING, DeploymentStatus.DEPLOYED),
            (DeploymentStatus.PENDING, DeploymentStatus.PENDING),
            (DeploymentStatus.BUILDING, DeploymentStatus.PENDING),
            (DeploymentStatus.BUILDING, DeploymentStatus.BUILDING),
            (DeploymentStatus.DEPLOYED, DeploymentStatus.FAILED),
            (DeploymentStatus.DEPLOYED, DeploymentStatus.BUILDING),
            (DeploymentStatus.FAILED, DeploymentStatus.DEPLOYED),
            (DeploymentStatus.FAILED, DeploymentStatus.PENDING),
        ],
    )
    def test_forbidden(self, current: DeploymentStatus, target: DeploymentStatus) -> None:
        """No state is re-entered and terminal states have no way out."""
        assert not can_transition(current, target)

    def test_terminal_states(self) -> None:
        assert is_terminal(DeploymentStatus.DEPLOYED)
        assert is_terminal(DeploymentStatus.FAILED)
        assert not is_terminal(DeploymentStatus.PENDING)
        assert not is_terminal(DeploymentStatus.BUILDING)


# =============================================================================
# Test: transition()
# =============================================================================
class TestTransition:
    """Tests for producing the next record snapshot."""

    def test_returns_new_snapshot(self) -> None:
        """The input record is left untouched."""
        pending = _make_record()
        building = transition(pending, DeploymentStatus.BUILDING)

        assert building.status == DeploymentStatus.BUILDING
        assert pending.status == DeploymentStatus.PENDING
        assert building is not pending

    def test_updated_at_advances(self) -> None:
        pending = _make_record()
        building = transition(pending, DeploymentStatus.BUILDING)
        assert building.updated_at >= pending.updated_at
        assert building.created_at == pending.created_at

    def test_deployed_carries_changes(self) -> None:
        building = _make_record(DeploymentStatus.BUILDING)
        deployed = transition(
            building,
            DeploymentStatus.DEPLOYED,
            url="https://app-1.example",
            placements={"demo": "0xabc"},
            transaction_ids=["0x1"],
            resource_cost=21000,
        )
        assert deployed.url == "https://app-1.example"
        assert deployed.placements == {"demo": "0xabc"}
        assert deployed.transaction_ids == ["0x1"]
        assert deployed.resource_cost == 21000

    def test_changes_are_copied(self) -> None:
        """Mutating the dict passed in does not leak into the snapshot."""
        placements = {"demo": "0xabc"}
        deployed = transition(
            _make_record(DeploymentStatus.BUILDING),
            DeploymentStatus.DEPLOYED,
            url="https://app-1.example",
            placements=placements,
        )
        placements["other"] = "0xdef"
        assert deployed.placements == {"demo": "0xabc"}

    def test_pending_can_fail_directly(self) -> None:
        failed = transition(
            _make_record(), DeploymentStatus.FAILED, error_message="store exploded"
        )
        assert failed.status == DeploymentStatus.FAILED
        assert failed.error_message == "store exploded"

    def test_illegal_move_raises(self) -> None:
        deployed = _make_record(DeploymentStatus.DEPLOYED, url="https://app-1.example")
        with pytest.raises(InvalidTransitionError) as exc_info:
            transition(deployed, DeploymentStatus.FAILED, error_message="late")
        assert exc_info.value.details["from"] == "deployed"
        assert exc_info.value.details["to"] == "failed"

    def test_deployed_requires_url(self) -> None:
        with pytest.raises(InvalidTransitionError):
            transition(_make_record(DeploymentStatus.BUILDING), DeploymentStatus.DEPLOYED)

    def test_failed_requires_error_message(self) -> None:
        with pytest.raises(InvalidTransitionError):
            transition(_make_record(DeploymentStatus.BUILDING), DeploymentStatus.FAILED)

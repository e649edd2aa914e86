"""
Tests for deploychain.orchestration.reconciler - PublishReconciler
====================================================================

What's Being Tested:
    - Receipts → outcome:  placements, ordered transaction ids, summed cost
    - Order stability:     same artifact set, same declared order → same
                           transaction sequence
    - Fail-fast:           a call error on artifact k of n stops at k calls
                           and carries the partial outcome
    - Lenient extraction:  unparsable cost adds zero, missing placement is a
                           warning, neither raises
    - Initialization args: default empty list, custom factory
    - parse_cost_figure()
"""

import pytest

from deploychain.core.exceptions import PublishError, PublisherError
from deploychain.core.models import BuildArtifact
from deploychain.integrations.publisher.mock import MockPublisher
from deploychain.orchestration.reconciler import PublishReconciler, parse_cost_figure


def _artifacts(*names: str) -> dict[str, BuildArtifact]:
    """Artifact mapping in the given declared order."""
    return {name: BuildArtifact(name=name, bytecode=f"0x{i:02x}") for i, name in enumerate(names)}


# =============================================================================
# Test: parse_cost_figure
# =============================================================================
class TestParseCostFigure:

    @pytest.mark.parametrize(
        "value,expected",
        [
            (21000, 21000),
            ("21000", 21000),
            (" 42 ", 42),
            (0, 0),
            ("0", 0),
        ],
    )
    def test_parses_base10_integers(self, value, expected: int) -> None:
        assert parse_cost_figure(value) == expected

    @pytest.mark.parametrize(
        "value",
        [None, "", "abc", "0x5208", "1.5", "-5", -5, True, False, 3.0],
    )
    def test_rejects_unusable_values(self, value) -> None:
        assert parse_cost_figure(value) is None


# =============================================================================
# Test: Successful Reconciliation
# =============================================================================
class TestReconcile:
    """Tests for reconciling successful publish calls."""

    async def test_single_artifact(self) -> None:
        publisher = MockPublisher()
        publisher.queue_receipt(placement_id="0xabc", transaction_id="0x1", cost_figure="21000")

        outcome = await PublishReconciler(publisher).reconcile(_artifacts("demo"), "sepolia")

        assert outcome.placements == {"demo": "0xabc"}
        assert outcome.transaction_ids == ["0x1"]
        assert outcome.total_cost == 21000
        assert outcome.warnings == []

    async def test_costs_are_summed_and_transactions_ordered(self) -> None:
        publisher = MockPublisher()
        publisher.queue_receipt(placement_id="0xa", transaction_id="0x1", cost_figure="100")
        publisher.queue_receipt(placement_id="0xb", transaction_id="0x2", cost_figure=250)
        publisher.queue_receipt(placement_id="0xc", transaction_id="0x3")

        outcome = await PublishReconciler(publisher).reconcile(
            _artifacts("A", "B", "C"), "sepolia"
        )

        assert outcome.placements == {"A": "0xa", "B": "0xb", "C": "0xc"}
        assert outcome.transaction_ids == ["0x1", "0x2", "0x3"]
        assert outcome.total_cost == 350

    async def test_artifacts_published_in_declared_order(self) -> None:
        publisher = MockPublisher()
        await PublishReconciler(publisher).reconcile(_artifacts("Zeta", "Alpha", "Mid"), "sepolia")
        assert publisher.published_names == ["Zeta", "Alpha", "Mid"]

    async def test_order_stable_across_runs(self) -> None:
        """The same artifact set in the same order gives the same sequence."""
        artifacts = _artifacts("Token", "Market", "Auction")

        first = await PublishReconciler(MockPublisher()).reconcile(artifacts, "sepolia")
        second = await PublishReconciler(MockPublisher()).reconcile(artifacts, "sepolia")

        assert first.transaction_ids == second.transaction_ids
        assert len(first.transaction_ids) == 3

    async def test_publishes_to_target_environment(self) -> None:
        publisher = MockPublisher()
        await PublishReconciler(publisher).reconcile(_artifacts("A"), "holesky")
        assert publisher.call_history[0]["target_environment"] == "holesky"

    async def test_empty_artifact_set(self) -> None:
        publisher = MockPublisher()
        outcome = await PublishReconciler(publisher).reconcile({}, "sepolia")
        assert outcome.placements == {}
        assert publisher.call_count == 0


# =============================================================================
# Test: Fail-Fast on Call Errors
# =============================================================================
class TestFailFast:
    """A publish call error aborts the remaining artifacts."""

    @pytest.mark.parametrize("k,n", [(1, 1), (1, 4), (2, 4), (4, 4)])
    async def test_call_count_equals_k(self, k: int, n: int) -> None:
        names = [f"C{i}" for i in range(1, n + 1)]
        publisher = MockPublisher()
        publisher.fail_on(names[k - 1], "execution reverted")

        with pytest.raises(PublishError) as exc_info:
            await PublishReconciler(publisher).reconcile(_artifacts(*names), "sepolia")

        assert publisher.call_count == k
        assert exc_info.value.artifact_name == names[k - 1]

    async def test_error_names_artifact_and_carries_partial_outcome(self) -> None:
        publisher = MockPublisher()
        publisher.queue_receipt(placement_id="0xa", transaction_id="0x1", cost_figure="10")
        publisher.queue_error("insufficient funds")

        with pytest.raises(PublishError) as exc_info:
            await PublishReconciler(publisher).reconcile(_artifacts("A", "B", "C"), "sepolia")

        error = exc_info.value
        assert "B" in error.message
        assert "insufficient funds" in error.message
        assert isinstance(error.__cause__, PublisherError)
        assert error.outcome.placements == {"A": "0xa"}
        assert error.outcome.transaction_ids == ["0x1"]
        assert error.outcome.total_cost == 10

    async def test_unexpected_exception_is_wrapped(self) -> None:
        """Anything the publisher raises counts as a call error."""
        class ExplodingPublisher(MockPublisher):
            async def publish(self, target_environment, artifact, init_args):
                raise RuntimeError("socket closed")

        with pytest.raises(PublishError, match="socket closed"):
            await PublishReconciler(ExplodingPublisher()).reconcile(_artifacts("A"), "sepolia")


# =============================================================================
# Test: Lenient Extraction
# =============================================================================
class TestLenientExtraction:
    """Problems in a successful response are warnings, not failures."""

    async def test_unparsable_cost_contributes_zero(self) -> None:
        publisher = MockPublisher()
        publisher.queue_receipt(placement_id="0xa", transaction_id="0x1", cost_figure="lots")
        publisher.queue_receipt(placement_id="0xb", transaction_id="0x2", cost_figure="500")

        outcome = await PublishReconciler(publisher).reconcile(_artifacts("A", "B"), "sepolia")

        assert outcome.total_cost == 500
        assert outcome.placements == {"A": "0xa", "B": "0xb"}
        assert len(outcome.warnings) == 1
        assert "lots" in outcome.warnings[0]

    async def test_missing_placement_leaves_artifact_unmapped(self) -> None:
        publisher = MockPublisher()
        publisher.queue_receipt(placement_id=None, transaction_id="0x1")
        publisher.queue_receipt(placement_id="0xb", transaction_id="0x2")

        outcome = await PublishReconciler(publisher).reconcile(_artifacts("A", "B"), "sepolia")

        assert outcome.placements == {"B": "0xb"}
        assert outcome.missing_placements == ["A"]
        assert outcome.transaction_ids == ["0x1", "0x2"]
        assert any("'A'" in warning for warning in outcome.warnings)

    async def test_empty_transaction_id_not_appended(self) -> None:
        publisher = MockPublisher()
        publisher.queue_receipt(placement_id="0xa", transaction_id="")
        publisher.queue_receipt(placement_id="0xb", transaction_id=None)

        outcome = await PublishReconciler(publisher).reconcile(_artifacts("A", "B"), "sepolia")

        assert outcome.transaction_ids == []
        assert outcome.warnings == []

    async def test_missing_cost_is_not_a_warning(self) -> None:
        publisher = MockPublisher()
        publisher.queue_receipt(placement_id="0xa", transaction_id="0x1")

        outcome = await PublishReconciler(publisher).reconcile(_artifacts("A"), "sepolia")

        assert outcome.total_cost == 0
        assert outcome.warnings == []


# =============================================================================
# Test: Initialization Arguments
# =============================================================================
class TestInitArgs:

    async def test_default_is_empty(self) -> None:
        publisher = MockPublisher()
        await PublishReconciler(publisher).reconcile(_artifacts("A"), "sepolia")
        assert publisher.call_history[0]["init_args"] == []

    async def test_custom_factory(self) -> None:
        publisher = MockPublisher()
        reconciler = PublishReconciler(
            publisher, init_args_factory=lambda artifact: [artifact.name, 18]
        )

        await reconciler.reconcile(_artifacts("Token"), "sepolia")

        assert publisher.call_history[0]["init_args"] == ["Token", 18]

    async def test_failing_factory_is_a_publish_error(self) -> None:
        def factory(artifact):
            raise ValueError("missing constructor args")

        publisher = MockPublisher()
        with pytest.raises(PublishError, match="missing constructor args"):
            await PublishReconciler(publisher, factory).reconcile(_artifacts("A", "B"), "sepolia")
        assert publisher.call_count == 0

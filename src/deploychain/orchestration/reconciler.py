"""
deploychain.orchestration.reconciler - Artifact-Publish Reconciliation
========================================================================

This module turns per-artifact publisher responses into a single normalized
PublishOutcome: placement mapping, ordered transaction identifiers and the
total resource cost.

Reconciliation Algorithm:
    for each artifact, in the mapping's declared order:
        ┌──────────────────────────────────────────────────────────────┐
        │ 1. publisher.publish(env, artifact, init_args(artifact))     │
        │ 2. call raised?        → PublishError(artifact, partial)     │
        │                          remaining artifacts NOT attempted   │
        │ 3. receipt.placement   → placements[artifact.name]           │
        │    receipt.transaction → transaction_ids.append(...)         │
        │    receipt.cost        → total_cost += int(cost)             │
        │                          unparsable → warning, adds 0        │
        │ 4. no placement?       → warning, artifact left unmapped     │
        └──────────────────────────────────────────────────────────────┘

Strict vs. Lenient:
    A call error is fatal (fail-fast, not best-effort). Anything wrong with
    the body of a *successful* call is only logged: the publisher said the
    artifact went out, so the run is not failed because a field could not
    be read.

Usage:
    >>> reconciler = PublishReconciler(publisher)
    >>> outcome = await reconciler.reconcile(artifacts, "sepolia")
    >>> outcome.placements
    {'Token': '0xabc'}
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Union

import structlog

from deploychain.core.exceptions import PublishError
from deploychain.core.models import BuildArtifact, PublishOutcome
from deploychain.integrations.publisher.base import Publisher


logger = structlog.get_logger()


InitArgsFactory = Callable[[BuildArtifact], list[Any]]


def no_init_args(artifact: BuildArtifact) -> list[Any]:
    """Default initialization arguments: none."""
    return []


def parse_cost_figure(value: Optional[Union[int, str]]) -> Optional[int]:
    """Parse a reported cost figure as a non-negative base-10 integer.

    Returns:
        The parsed value, or None when the figure is not a usable integer
        (bools, negatives, hex strings, free text, ...).

    Example:
        >>> parse_cost_figure("21000")
        21000
        >>> parse_cost_figure("0x5208") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = int(value.strip(), 10)
        except ValueError:
            return None
    else:
        return None

    return parsed if parsed >= 0 else None


class PublishReconciler:
    """Publishes artifacts one by one and reconciles the receipts.

    Attributes:
        _publisher: The publisher every artifact is sent to.
        _init_args_factory: Builds each artifact's initialization arguments.
    """

    def __init__(
        self,
        publisher: Publisher,
        init_args_factory: Optional[InitArgsFactory] = None,
    ) -> None:
        self._publisher = publisher
        self._init_args_factory = init_args_factory or no_init_args
        self._logger = logger.bind(component="publish_reconciler")

    async def reconcile(
        self,
        artifacts: Mapping[str, BuildArtifact],
        target_environment: str,
    ) -> PublishOutcome:
        """Publish every artifact and build the normalized outcome.

        Args:
            artifacts: Artifact name → BuildArtifact. Iteration order is the
                processing order.
            target_environment: Where the artifacts are published.

        Returns:
            The PublishOutcome for all artifacts.

        Raises:
            PublishError: On the first publish call that errors. Carries the
                partial outcome of the artifacts processed before it.
        """
        outcome = PublishOutcome()

        for name, artifact in artifacts.items():
            try:
                init_args = self._init_args_factory(artifact)
                receipt = await self._publisher.publish(
                    target_environment, artifact, init_args
                )
            except Exception as exc:
                self._logger.error(
                    "publish_call_failed",
                    artifact=name,
                    target_environment=target_environment,
                    error=str(exc),
                )
                raise PublishError(
                    message=f"Failed to publish artifact '{name}': {exc}",
                    artifact_name=name,
                    outcome=outcome,
                ) from exc

            if receipt.placement_id:
                outcome.placements[name] = receipt.placement_id
            else:
                warning = f"No placement identifier returned for artifact '{name}'"
                outcome.missing_placements.append(name)
                outcome.warnings.append(warning)
                self._logger.warning("placement_missing", artifact=name)

            if receipt.transaction_id:
                outcome.transaction_ids.append(receipt.transaction_id)

            if receipt.cost_figure is not None:
                cost = parse_cost_figure(receipt.cost_figure)
                if cost is None:
                    outcome.warnings.append(
                        f"Unparsable cost figure {receipt.cost_figure!r} "
                        f"for artifact '{name}'"
                    )
                    self._logger.warning(
                        "cost_figure_unparsable",
                        artifact=name,
                        cost_figure=receipt.cost_figure,
                    )
                else:
                    outcome.total_cost += cost

            self._logger.info(
                "artifact_published",
                artifact=name,
                placement_id=receipt.placement_id,
                transaction_id=receipt.transaction_id,
            )

        return outcome

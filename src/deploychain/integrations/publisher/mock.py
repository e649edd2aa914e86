"""
deploychain.integrations.publisher.mock - Mock Publisher for Testing
======================================================================

A publisher that returns configurable receipts without any network calls.

How It Works:
    The mock keeps a FIFO queue of outcomes. Each publish() call:
    1. Raises if the artifact was registered with fail_on().
    2. Otherwise pops the next queued outcome: a receipt is returned,
       an exception is raised.
    3. With an empty queue, returns a deterministic default receipt.

Usage:
    >>> publisher = MockPublisher()
    >>> publisher.queue_receipt(placement_id="0xabc", transaction_id="0x1",
    ...                         cost_figure="21000")
    >>> publisher.fail_on("Broken", "execution reverted")
    >>> receipt = await publisher.publish("sepolia", artifact, [])
    >>> publisher.call_count
    1
"""

from __future__ import annotations

from collections import deque
from typing import Any, Optional, Union

import structlog

from deploychain.core.config import PublisherConfig
from deploychain.core.exceptions import PublisherError
from deploychain.core.models import BuildArtifact, PublishReceipt
from deploychain.integrations.publisher.base import Publisher


logger = structlog.get_logger()


class MockPublisher(Publisher):
    """Mock publisher for tests and local development.

    Attributes:
        _queue: Pending outcomes (PublishReceipt or Exception), FIFO.
        _failing_artifacts: Artifact name → error message.
        _call_history: Every publish() call, in order.
        _connection_error: When set, test_connection() raises it.
    """

    def __init__(self, config: Optional[PublisherConfig] = None) -> None:
        super().__init__(config or PublisherConfig(backend="mock"))

        self._queue: deque[Union[PublishReceipt, Exception]] = deque()
        self._failing_artifacts: dict[str, str] = {}
        self._call_history: list[dict[str, Any]] = []
        self._connection_error: Optional[str] = None
        self._closed: bool = False
        self._logger = logger.bind(component="mock_publisher")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """Recorded publish() calls: target_environment, artifact, init_args."""
        return self._call_history

    @property
    def call_count(self) -> int:
        return len(self._call_history)

    @property
    def published_names(self) -> list[str]:
        """Artifact names in the order publish() was called for them."""
        return [call["artifact"].name for call in self._call_history]

    @property
    def is_closed(self) -> bool:
        return self._closed

    # =========================================================================
    # Queue Management
    # =========================================================================

    def queue_receipt(
        self,
        placement_id: Optional[str] = None,
        transaction_id: Optional[str] = None,
        cost_figure: Optional[Union[int, str]] = None,
        raw: Optional[dict[str, Any]] = None,
    ) -> None:
        """Queue a successful outcome."""
        self._queue.append(
            PublishReceipt(
                placement_id=placement_id,
                transaction_id=transaction_id,
                cost_figure=cost_figure,
                raw=raw or {},
            )
        )

    def queue_error(self, message: str = "Mock publisher error") -> None:
        """Queue a failed call."""
        self._queue.append(PublisherError(message))

    def fail_on(self, artifact_name: str, message: str = "Mock publisher error") -> None:
        """Make every publish() of ``artifact_name`` fail."""
        self._failing_artifacts[artifact_name] = message

    def set_connection_error(self, message: Optional[str]) -> None:
        """Make test_connection() fail with ``message`` (None restores it)."""
        self._connection_error = message

    # =========================================================================
    # Publisher Implementation
    # =========================================================================

    async def publish(
        self,
        target_environment: str,
        artifact: BuildArtifact,
        init_args: list[Any],
    ) -> PublishReceipt:
        self._call_history.append({
            "target_environment": target_environment,
            "artifact": artifact,
            "init_args": list(init_args),
        })
        call_number = len(self._call_history)

        self._logger.debug(
            "mock_publish_called",
            artifact=artifact.name,
            target_environment=target_environment,
            queue_size=len(self._queue),
        )

        if artifact.name in self._failing_artifacts:
            raise PublisherError(self._failing_artifacts[artifact.name])

        if self._queue:
            outcome = self._queue.popleft()
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        return PublishReceipt(
            placement_id=f"0x{call_number:040x}",
            transaction_id=f"0x{call_number:064x}",
            cost_figure="21000",
        )

    async def test_connection(self) -> None:
        if self._connection_error is not None:
            raise PublisherError(self._connection_error)

    async def aclose(self) -> None:
        self._closed = True

"""
deploychain.integrations.publisher.base - Abstract Publisher Interface
========================================================================

This module defines the contract every publisher implements. A publisher
places one compiled artifact into a target environment per call and reports
where it went, which transaction did it, and what it cost.

Architecture Context:
    ┌────────────────────┐   publish()    ┌──────────────────┐
    │  PublishReconciler │ ─────────────→ │  Publisher        │
    │                    │ ←─ Receipt ─── │  (abstract)       │
    └────────────────────┘                └────────┬─────────┘
                                                   │
                                        ┌──────────┴──────────┐
                                   ┌────▼───┐         ┌───────▼──────┐
                                   │  Mock  │         │  MultiBaas   │
                                   │        │         │  (httpx)     │
                                   └────────┘         └──────────────┘

Contract:
    - publish() returns a PublishReceipt on success. Every receipt field is
      optional; the reconciler decides what a missing field means.
    - publish() raises on failure. Any exception counts as a call error.
    - test_connection() raises on failure and has no side effects.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from deploychain.core.config import PublisherConfig
from deploychain.core.models import BuildArtifact, PublishReceipt


class Publisher(ABC):
    """Abstract base class for artifact publishers.

    Attributes:
        _config: Publisher configuration.
    """

    def __init__(self, config: PublisherConfig) -> None:
        self._config = config

    @property
    def config(self) -> PublisherConfig:
        """Access the publisher configuration."""
        return self._config

    @property
    def target_environment(self) -> str:
        """Default environment artifacts are published to."""
        return self._config.target_environment

    @abstractmethod
    async def publish(
        self,
        target_environment: str,
        artifact: BuildArtifact,
        init_args: list[Any],
    ) -> PublishReceipt:
        """Publish one artifact.

        Args:
            target_environment: Environment to publish into.
            artifact: The compiled artifact.
            init_args: Constructor/initialization arguments.

        Returns:
            The receipt describing the placement.

        Raises:
            PublisherError: If the call fails.
        """

    @abstractmethod
    async def test_connection(self) -> None:
        """Probe the publish environment.

        Raises:
            PublisherError: If the environment is unreachable.
        """

    async def aclose(self) -> None:
        """Release network resources. Default: nothing to release."""

"""
deploychain.integrations.publisher.factory - Publisher Factory
================================================================

Maps ``PublisherConfig.backend`` to a concrete Publisher:
    - "multibaas" → MultiBaasPublisher (REST API over httpx)
    - "mock"      → MockPublisher (deterministic receipts, no network)
"""

from __future__ import annotations

from deploychain.core.config import PublisherConfig
from deploychain.core.exceptions import ConfigurationError
from deploychain.integrations.publisher.base import Publisher


def create_publisher(config: PublisherConfig) -> Publisher:
    """Create a publisher based on configuration.

    Raises:
        ConfigurationError: If the backend name is not recognized.
    """
    backend = config.backend.lower()

    if backend == "multibaas":
        from deploychain.integrations.publisher.multibaas import MultiBaasPublisher
        return MultiBaasPublisher(config)

    if backend == "mock":
        from deploychain.integrations.publisher.mock import MockPublisher
        return MockPublisher(config)

    raise ConfigurationError(
        message=f"Unknown publisher backend: '{backend}'. Available: 'multibaas', 'mock'.",
        details={"backend": backend},
    )

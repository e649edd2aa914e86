"""
deploychain.integrations.executor.factory - Stage Executor Factory
====================================================================

Maps ``ExecutorConfig.backend`` to a concrete StageExecutor:
    - "local" → LocalStageExecutor (git + build tool on this machine)
    - "mock"  → MockStageExecutor (in-memory trees, for tests and demos)

Usage:
    >>> executor = create_stage_executor(ExecutorConfig(backend="mock"))
    >>> type(executor)  # MockStageExecutor
"""

from __future__ import annotations

from deploychain.core.config import ExecutorConfig
from deploychain.core.exceptions import ConfigurationError
from deploychain.integrations.executor.base import StageExecutor


def create_stage_executor(config: ExecutorConfig) -> StageExecutor:
    """Create a stage executor based on configuration.

    Raises:
        ConfigurationError: If the backend name is not recognized.
    """
    backend = config.backend.lower()

    if backend == "local":
        from deploychain.integrations.executor.local import LocalStageExecutor
        return LocalStageExecutor(config)

    if backend == "mock":
        from deploychain.integrations.executor.mock import MockStageExecutor
        return MockStageExecutor(config)

    raise ConfigurationError(
        message=f"Unknown stage executor backend: '{backend}'. Available: 'local', 'mock'.",
        details={"backend": backend},
    )

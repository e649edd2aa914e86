"""
deploychain.facade - DeployChain Top-Level Facade
===================================================

This module implements the DeployChain facade: the single entry point that
wires configuration, the record store, the stage executor, the publisher,
and the pipeline orchestrator together.

Architecture Context:
    ┌──────────────────────────────────────────────────┐
    │               DeployChain (Facade)                │
    │                                                   │
    │  ┌─────────────────────────────────────────────┐ │
    │  │         Orchestration Layer                   │ │
    │  │  PipelineOrchestrator, PublishReconciler,    │ │
    │  │  HealthProbe                                 │ │
    │  └─────────────────────┬───────────────────────┘ │
    │                        │                          │
    │  ┌─────────────────────▼───────────────────────┐ │
    │  │         Infrastructure Layer                  │ │
    │  │  DeploymentRecordStore                        │ │
    │  └─────────────────────┬───────────────────────┘ │
    │                        │                          │
    │  ┌─────────────────────▼───────────────────────┐ │
    │  │         Integration Layer                     │ │
    │  │  StageExecutor (git + build tool), Publisher │ │
    │  └─────────────────────────────────────────────┘ │
    └──────────────────────────────────────────────────┘

Usage:
    >>> from deploychain import DeployChain
    >>>
    >>> async with DeployChain() as chain:
    ...     deployment_id = await chain.submit(
    ...         "https://github.com/acme/token.git", "main", "token")
    ...     record = await chain.wait_for(deployment_id)
    ...     print(record.status, record.placements)
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import structlog

from deploychain.core.config import DeployChainConfig
from deploychain.core.models import BuildLogEntry, DeploymentRecord, HealthReport
from deploychain.infrastructure.record_store import (
    DeploymentRecordStore,
    InMemoryDeploymentRecordStore,
)
from deploychain.integrations.executor.base import StageExecutor
from deploychain.integrations.executor.factory import create_stage_executor
from deploychain.integrations.publisher.base import Publisher
from deploychain.integrations.publisher.factory import create_publisher
from deploychain.orchestration.health import HealthProbe
from deploychain.orchestration.pipeline import PipelineOrchestrator
from deploychain.orchestration.reconciler import InitArgsFactory


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


class DeployChain:
    """Top-level facade for the DeployChain pipeline.

    Lifecycle:
        1. ``DeployChain(config)`` - Instantiate with configuration
        2. ``await initialize()`` - Connect the record store
        3. ``await submit(...)``  - Schedule deployments
        4. ``await shutdown()``   - Drain in-flight runs, release resources
                                    (final: a shut-down instance is not reused)

    Or use the async context manager:
        async with DeployChain(config) as chain:
            ...

    Attributes:
        _config: DeployChain configuration.
        _store: Deployment record persistence.
        _executor: Stage executor built from config.executor.
        _publisher: Publisher built from config.publisher.
        _orchestrator: Schedules and runs the pipelines.
        _health: Reachability probe over store and publisher.
        _initialized: Whether initialize() has been called.
        _closed: Whether shutdown() has released the collaborators.
    """

    def __init__(
        self,
        config: Optional[DeployChainConfig] = None,
        *,
        store: Optional[DeploymentRecordStore] = None,
        executor: Optional[StageExecutor] = None,
        publisher: Optional[Publisher] = None,
        init_args_factory: Optional[InitArgsFactory] = None,
    ) -> None:
        """Initialize the DeployChain facade.

        Args:
            config: DeployChain configuration. Defaults to DeployChainConfig(),
                which reads DEPLOYCHAIN_* environment variables.
            store: Optional record store. Defaults to the in-memory store.
            executor: Optional stage executor. Defaults to the one named by
                ``config.executor.backend``.
            publisher: Optional publisher. Defaults to the one named by
                ``config.publisher.backend``.
            init_args_factory: Builds per-artifact initialization arguments.
                Defaults to an empty list for every artifact.
        """
        self._config = config or DeployChainConfig()

        self._store = store or InMemoryDeploymentRecordStore()
        self._executor = executor or create_stage_executor(self._config.executor)
        self._publisher = publisher or create_publisher(self._config.publisher)

        self._orchestrator = PipelineOrchestrator(
            store=self._store,
            executor=self._executor,
            publisher=self._publisher,
            config=self._config,
            init_args_factory=init_args_factory,
        )
        self._health = HealthProbe(self._store, self._publisher)

        self._initialized = False
        self._closed = False
        self._logger = logger.bind(component="deploychain")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> DeployChainConfig:
        return self._config

    @property
    def store(self) -> DeploymentRecordStore:
        return self._store

    @property
    def orchestrator(self) -> PipelineOrchestrator:
        """Access the orchestrator for direct run control."""
        return self._orchestrator

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def initialize(self) -> None:
        """Connect the record store. Idempotent while running.

        Raises:
            RuntimeError: If this instance has already been shut down. The
                publisher is closed by shutdown(), so a fresh DeployChain is
                needed.
        """
        if self._initialized:
            self._logger.debug("deploychain_already_initialized")
            return
        if self._closed:
            raise RuntimeError(
                "DeployChain has been shut down and cannot be initialized again. "
                "Create a new DeployChain instance."
            )

        await self._store.connect()

        self._initialized = True
        self._logger.info(
            "deploychain_initialized",
            environment=self._config.environment,
            executor=self._config.executor.backend,
            publisher=self._config.publisher.backend,
        )

    async def shutdown(self) -> None:
        """Wait for in-flight runs, then release the publisher and store.

        Idempotent: Safe to call multiple times.
        """
        if not self._initialized:
            self._logger.debug("deploychain_not_initialized_skipping_shutdown")
            return

        self._logger.info(
            "deploychain_shutting_down",
            active_runs=self._orchestrator.active_runs,
        )

        await self._orchestrator.drain()
        await self._publisher.aclose()
        await self._store.disconnect()

        self._initialized = False
        self._closed = True
        self._logger.info("deploychain_shutdown_complete")

    async def __aenter__(self) -> DeployChain:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.shutdown()

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit(self, source_location: str, revision: str, project_name: str) -> int:
        """Schedule a deployment and return its id immediately.

        Raises:
            RuntimeError: If DeployChain has not been initialized.
            SubmissionValidationError: If any value is blank.
        """
        self._ensure_initialized()
        return await self._orchestrator.submit(source_location, revision, project_name)

    async def submit_push_event(self, payload: Mapping[str, Any]) -> int:
        """Schedule a deployment from a push notification payload.

        Raises:
            RuntimeError: If DeployChain has not been initialized.
            SubmissionValidationError: If the payload is malformed.
        """
        self._ensure_initialized()
        return await self._orchestrator.submit_push_event(payload)

    async def wait_for(self, deployment_id: int) -> DeploymentRecord:
        """Wait for a deployment's run to finish and return its record."""
        self._ensure_initialized()
        return await self._orchestrator.wait_for(deployment_id)

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_deployment(self, deployment_id: int) -> DeploymentRecord:
        """Raises RecordNotFoundError for an unknown id."""
        self._ensure_initialized()
        return await self._store.get(deployment_id)

    async def list_deployments(self) -> list[DeploymentRecord]:
        """All deployments, newest first."""
        self._ensure_initialized()
        return await self._store.list()

    async def get_build_logs(self, deployment_id: int) -> list[BuildLogEntry]:
        self._ensure_initialized()
        return await self._store.list_build_logs(deployment_id)

    async def health(self) -> HealthReport:
        """Probe the record store and the publisher."""
        return await self._health.check()

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "DeployChain has not been initialized. "
                "Call await chain.initialize() or use 'async with DeployChain() as chain:'"
            )

    def __repr__(self) -> str:
        return (
            f"DeployChain("
            f"initialized={self._initialized}, "
            f"active_runs={self._orchestrator.active_runs})"
        )

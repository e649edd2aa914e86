"""
deploychain.infrastructure.record_store - Deployment Record Persistence
=========================================================================

This module implements the Deployment Record Store: the durable mapping
from deployment identifier to deployment state.

Architecture:
    ┌──────────────┐  create/get/list   ┌──────────────────────┐
    │  Submitter /  │ ─────────────────→ │                      │
    │  Facade       │                    │  DeploymentRecord    │
    └──────────────┘                    │  Store               │
    ┌──────────────┐  update /          │                      │
    │  Pipeline     │  update_status     │  - records           │
    │  Orchestrator │ ─────────────────→ │  - build logs        │
    └──────────────┘                    └──────────────────────┘

Concurrency:
    Each record is only ever written by the run that owns it, but many runs
    write concurrently. Every write goes through one asyncio.Lock, and the
    store hands out copies so no caller ever shares a record with it.

Implementations:
    - DeploymentRecordStore (ABC):      Abstract interface
    - InMemoryDeploymentRecordStore:    Dict-based for dev/testing
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from deploychain.core.enums import DeploymentStatus
from deploychain.core.exceptions import PersistenceError, RecordNotFoundError
from deploychain.core.models import BuildLogEntry, DeploymentRecord

logger = logging.getLogger(__name__)


# =============================================================================
# Abstract Base Class: DeploymentRecordStore
# =============================================================================
class DeploymentRecordStore(ABC):
    """Abstract base class for deployment record persistence.

    Components should type-hint against this ABC so a relational backend
    can replace the in-memory one without touching the orchestrator.
    """

    # -------------------------------------------------------------------------
    # Connection Lifecycle
    # -------------------------------------------------------------------------
    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the storage backend.

        Raises:
            PersistenceError: If connection cannot be established.
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """Gracefully disconnect from the storage backend."""

    @abstractmethod
    async def ping(self) -> None:
        """Check that the backend is reachable.

        Raises:
            PersistenceError: If the backend cannot be reached.
        """

    # -------------------------------------------------------------------------
    # Record Operations
    # -------------------------------------------------------------------------
    @abstractmethod
    async def create(self, record: DeploymentRecord) -> int:
        """Persist a new record and assign its identifier.

        Args:
            record: The record to persist. Its deployment_id is ignored.

        Returns:
            The identifier assigned to the new record.

        Raises:
            PersistenceError: If the write fails.
        """

    @abstractmethod
    async def get(self, deployment_id: int) -> DeploymentRecord:
        """Retrieve a record by identifier.

        Raises:
            RecordNotFoundError: If no record has this identifier.
        """

    @abstractmethod
    async def list(self) -> list[DeploymentRecord]:
        """List every record, most recent first."""

    @abstractmethod
    async def update(self, record: DeploymentRecord) -> None:
        """Overwrite the stored record that has ``record.deployment_id``.

        Raises:
            RecordNotFoundError: If the record does not exist.
            PersistenceError: If the write fails.
        """

    @abstractmethod
    async def update_status(
        self,
        deployment_id: int,
        status: DeploymentStatus,
        error_message: str = "",
    ) -> None:
        """Narrow update of status and error message only.

        Raises:
            RecordNotFoundError: If the record does not exist.
            PersistenceError: If the write fails.
        """

    # -------------------------------------------------------------------------
    # Build Log Operations
    # -------------------------------------------------------------------------
    @abstractmethod
    async def add_build_log(self, entry: BuildLogEntry) -> None:
        """Append a build-log entry to a deployment.

        Raises:
            RecordNotFoundError: If the deployment does not exist.
        """

    @abstractmethod
    async def list_build_logs(self, deployment_id: int) -> list[BuildLogEntry]:
        """Return a deployment's build-log entries, oldest first."""


# =============================================================================
# InMemoryDeploymentRecordStore Implementation
# =============================================================================
# Key Data Structures:
#   _records:    dict[deployment_id, DeploymentRecord]
#   _build_logs: dict[deployment_id, list[BuildLogEntry]]
#   _next_id:    next identifier to hand out (starts at 1, never reused)
# =============================================================================
class InMemoryDeploymentRecordStore(DeploymentRecordStore):
    """In-memory record store for development and testing.

    Data is lost when the process ends. Identifiers are consecutive
    integers starting at 1, like a SERIAL primary key.

    Example:
        >>> store = InMemoryDeploymentRecordStore()
        >>> await store.connect()
        >>> deployment_id = await store.create(record)
        >>> stored = await store.get(deployment_id)
    """

    def __init__(self) -> None:
        self._records: dict[int, DeploymentRecord] = {}
        self._build_logs: dict[int, list[BuildLogEntry]] = {}
        self._next_id: int = 1
        self._lock = asyncio.Lock()
        self._connected: bool = False

    # -------------------------------------------------------------------------
    # Connection Lifecycle
    # -------------------------------------------------------------------------
    async def connect(self) -> None:
        """Mark the store as connected."""
        self._connected = True
        logger.info("InMemoryDeploymentRecordStore connected")

    async def disconnect(self) -> None:
        """Mark the store as disconnected. Stored records are kept."""
        self._connected = False
        logger.info("InMemoryDeploymentRecordStore disconnected")

    async def ping(self) -> None:
        """Fail unless connect() has been called."""
        if not self._connected:
            raise PersistenceError(
                message="Record store is not connected",
                error_code="STORE_NOT_CONNECTED",
            )

    # -------------------------------------------------------------------------
    # Record Operations
    # -------------------------------------------------------------------------
    async def create(self, record: DeploymentRecord) -> int:
        """Store a copy of ``record`` under a freshly assigned identifier."""
        async with self._lock:
            deployment_id = self._next_id
            self._next_id += 1
            self._records[deployment_id] = record.model_copy(
                update={"deployment_id": deployment_id},
                deep=True,
            )
            self._build_logs[deployment_id] = []

        logger.debug(
            "Created deployment %s (project=%s, status=%s)",
            deployment_id,
            record.project_name,
            record.status.value,
        )
        return deployment_id

    async def get(self, deployment_id: int) -> DeploymentRecord:
        """Return a copy of the stored record."""
        record = self._records.get(deployment_id)
        if record is None:
            raise RecordNotFoundError(deployment_id)
        return record.model_copy(deep=True)

    async def list(self) -> list[DeploymentRecord]:
        """Return copies of all records, newest first.

        Records created in the same instant are ordered by identifier,
        highest first.
        """
        records = sorted(
            self._records.values(),
            key=lambda r: (r.created_at, r.deployment_id or 0),
            reverse=True,
        )
        return [r.model_copy(deep=True) for r in records]

    async def update(self, record: DeploymentRecord) -> None:
        """Replace the stored record (last-write-wins)."""
        if record.deployment_id is None:
            raise PersistenceError(
                message="Cannot update a record that has no deployment_id",
                error_code="MISSING_DEPLOYMENT_ID",
            )

        async with self._lock:
            if record.deployment_id not in self._records:
                raise RecordNotFoundError(record.deployment_id)
            self._records[record.deployment_id] = record.model_copy(deep=True)

        logger.debug(
            "Updated deployment %s (status=%s)",
            record.deployment_id,
            record.status.value,
        )

    async def update_status(
        self,
        deployment_id: int,
        status: DeploymentStatus,
        error_message: str = "",
    ) -> None:
        """Change status and error message, leaving every other field alone."""
        async with self._lock:
            current = self._records.get(deployment_id)
            if current is None:
                raise RecordNotFoundError(deployment_id)
            self._records[deployment_id] = current.model_copy(
                update={
                    "status": status,
                    "error_message": error_message,
                    "updated_at": datetime.now(timezone.utc),
                },
                deep=True,
            )

        logger.debug(
            "Updated deployment %s status to %s", deployment_id, status.value
        )

    # -------------------------------------------------------------------------
    # Build Log Operations
    # -------------------------------------------------------------------------
    async def add_build_log(self, entry: BuildLogEntry) -> None:
        async with self._lock:
            if entry.deployment_id not in self._records:
                raise RecordNotFoundError(entry.deployment_id)
            self._build_logs[entry.deployment_id].append(entry)

    async def list_build_logs(self, deployment_id: int) -> list[BuildLogEntry]:
        if deployment_id not in self._records:
            raise RecordNotFoundError(deployment_id)
        return list(self._build_logs[deployment_id])

"""
deploychain.infrastructure - Persistence Layer
================================================

This package provides the storage components the orchestration layer relies
on. It implements the repository pattern for deployment records.

Components:
    - DeploymentRecordStore (ABC):     Abstract interface for record persistence
    - InMemoryDeploymentRecordStore:   In-memory implementation for development/testing

Usage:
    from deploychain.infrastructure import InMemoryDeploymentRecordStore
"""

from deploychain.infrastructure.record_store import (
    DeploymentRecordStore,
    InMemoryDeploymentRecordStore,
)

__all__ = [
    "DeploymentRecordStore",
    "InMemoryDeploymentRecordStore",
]

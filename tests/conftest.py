"""
Shared Test Fixtures for DeployChain
======================================

This module provides reusable pytest fixtures used across the entire
test suite. Fixtures are organized by layer:

    1. Configuration fixtures
    2. Infrastructure fixtures (record store)
    3. Integration fixtures (mock stage executor, mock publisher)
    4. Orchestration fixtures (PipelineOrchestrator)
    5. Facade fixtures (DeployChain)
"""

from __future__ import annotations

import pytest

from deploychain.core.config import DeployChainConfig, ExecutorConfig, PublisherConfig
from deploychain.core.models import BuildArtifact
from deploychain.facade import DeployChain
from deploychain.infrastructure.record_store import InMemoryDeploymentRecordStore
from deploychain.integrations.executor.mock import MockStageExecutor
from deploychain.integrations.publisher.mock import MockPublisher
from deploychain.orchestration.pipeline import PipelineOrchestrator


# =============================================================================
# Source Trees
# =============================================================================
# File layouts for the in-memory source trees served by MockStageExecutor.
# =============================================================================
CONTRACT_TREE = {
    "contracts/Token.sol": "pragma solidity ^0.8.19; contract Token {}",
    "hardhat.config.js": "module.exports = {};",
    "package.json": "{}",
}

STATIC_SITE_TREE = {
    "index.html": "<html></html>",
    "styles.css": "body {}",
}


def make_artifact(name: str, bytecode: str = "0x6080") -> BuildArtifact:
    """Create a minimal BuildArtifact for testing."""
    return BuildArtifact(
        name=name,
        bytecode=bytecode,
        abi="[]",
        compiler_version="0.8.19",
    )


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def config():
    """DeployChain configuration wired to the mock backends."""
    return DeployChainConfig(
        executor=ExecutorConfig(backend="mock"),
        publisher=PublisherConfig(backend="mock", target_environment="sepolia"),
    )


# =============================================================================
# Infrastructure
# =============================================================================

@pytest.fixture
async def record_store():
    """Connected InMemoryDeploymentRecordStore."""
    store = InMemoryDeploymentRecordStore()
    await store.connect()
    return store


# =============================================================================
# Integrations
# =============================================================================

@pytest.fixture
def mock_executor(config):
    """MockStageExecutor serving a recognized tree with one 'demo' artifact."""
    return MockStageExecutor(
        config.executor,
        files=CONTRACT_TREE,
        artifacts={"demo": make_artifact("demo")},
    )


@pytest.fixture
def mock_publisher(config):
    """Fresh MockPublisher with no queued receipts."""
    return MockPublisher(config.publisher)


# =============================================================================
# Orchestration
# =============================================================================

@pytest.fixture
def orchestrator(record_store, mock_executor, mock_publisher, config):
    """PipelineOrchestrator wired to the in-memory store and mock backends."""
    return PipelineOrchestrator(record_store, mock_executor, mock_publisher, config)


# =============================================================================
# Facade
# =============================================================================

@pytest.fixture
async def deploychain(config, mock_executor, mock_publisher):
    """Initialized DeployChain facade on the mock backends."""
    chain = DeployChain(config, executor=mock_executor, publisher=mock_publisher)
    await chain.initialize()
    yield chain
    await chain.shutdown()

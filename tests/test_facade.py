"""
Tests for deploychain.facade - DeployChain
============================================

What's Being Tested:
    - Construction:  defaults built from config, injected components kept
    - Lifecycle:     initialize/shutdown idempotence, async context manager,
                     shutdown drains in-flight runs
    - Guarding:      operations before initialize() raise RuntimeError
    - Delegation:    submit, push events, queries, build logs, health
"""

import pytest

from deploychain import DeployChain, __version__
from deploychain.core.config import DeployChainConfig, ExecutorConfig, PublisherConfig
from deploychain.core.enums import DeploymentStatus, HealthStatus
from deploychain.core.exceptions import RecordNotFoundError, SubmissionValidationError
from deploychain.infrastructure.record_store import InMemoryDeploymentRecordStore
from deploychain.integrations.executor.mock import MockStageExecutor
from deploychain.integrations.publisher.mock import MockPublisher


class TestConstruction:

    def test_version(self) -> None:
        assert __version__ == "0.1.0"

    def test_defaults_built_from_config(self, config) -> None:
        chain = DeployChain(config)
        assert isinstance(chain.store, InMemoryDeploymentRecordStore)
        assert not chain.is_initialized
        assert chain.config is config

    def test_mock_backends_selected_by_config(self) -> None:
        chain = DeployChain(DeployChainConfig(
            executor=ExecutorConfig(backend="mock"),
            publisher=PublisherConfig(backend="mock"),
        ))
        assert isinstance(chain.orchestrator._executor, MockStageExecutor)
        assert isinstance(chain.orchestrator._publisher, MockPublisher)

    def test_repr(self, config) -> None:
        assert "initialized=False" in repr(DeployChain(config))


class TestLifecycle:

    async def test_initialize_connects_store(self, config) -> None:
        chain = DeployChain(config)
        await chain.initialize()
        await chain.store.ping()
        await chain.initialize()
        assert chain.is_initialized
        await chain.shutdown()

    async def test_shutdown_is_idempotent(self, config) -> None:
        chain = DeployChain(config)
        await chain.shutdown()
        await chain.initialize()
        await chain.shutdown()
        await chain.shutdown()
        assert not chain.is_initialized

    async def test_context_manager(self, config, mock_publisher) -> None:
        async with DeployChain(config, publisher=mock_publisher) as chain:
            assert chain.is_initialized
        assert not chain.is_initialized
        assert mock_publisher.is_closed

    async def test_shutdown_drains_runs(self, config, mock_executor, mock_publisher) -> None:
        chain = DeployChain(config, executor=mock_executor, publisher=mock_publisher)
        await chain.initialize()
        deployment_id = await chain.submit("repo", "main", "demo")

        await chain.shutdown()

        assert chain.orchestrator.active_runs == 0
        record = await chain.store.get(deployment_id)
        assert record.status == DeploymentStatus.DEPLOYED

    async def test_initialize_after_shutdown_rejected(
        self, config, mock_executor, mock_publisher
    ) -> None:
        """The publisher is closed on shutdown, so the instance is done."""
        chain = DeployChain(config, executor=mock_executor, publisher=mock_publisher)
        await chain.initialize()
        await chain.wait_for(await chain.submit("repo", "main", "demo"))
        await chain.shutdown()

        with pytest.raises(RuntimeError, match="shut down"):
            await chain.initialize()

        assert not chain.is_initialized
        assert mock_publisher.is_closed
        with pytest.raises(RuntimeError, match="not been initialized"):
            await chain.submit("repo", "main", "demo")
        assert mock_publisher.call_count == 1

    async def test_operations_require_initialize(self, config) -> None:
        chain = DeployChain(config)
        with pytest.raises(RuntimeError, match="not been initialized"):
            await chain.submit("repo", "main", "demo")
        with pytest.raises(RuntimeError):
            await chain.list_deployments()


class TestDelegation:

    async def test_submit_and_get(self, deploychain) -> None:
        deployment_id = await deploychain.submit("repo", "main", "demo")
        record = await deploychain.wait_for(deployment_id)

        assert record.status == DeploymentStatus.DEPLOYED
        assert (await deploychain.get_deployment(deployment_id)) == record

    async def test_submit_push_event(self, deploychain) -> None:
        deployment_id = await deploychain.submit_push_event({
            "repository": {"clone_url": "https://github.com/acme/token.git"},
            "ref": "refs/heads/main",
        })
        record = await deploychain.wait_for(deployment_id)
        assert record.project_name == "https://github.com/acme/token.git"

    async def test_validation_error_surfaces(self, deploychain) -> None:
        with pytest.raises(SubmissionValidationError):
            await deploychain.submit("repo", "", "demo")

    async def test_list_deployments_newest_first(self, deploychain) -> None:
        first = await deploychain.submit("repo", "main", "first")
        second = await deploychain.submit("repo", "main", "second")
        await deploychain.orchestrator.drain()

        ids = [r.deployment_id for r in await deploychain.list_deployments()]
        assert ids == [second, first]

    async def test_get_unknown_deployment(self, deploychain) -> None:
        with pytest.raises(RecordNotFoundError):
            await deploychain.get_deployment(999)

    async def test_build_logs(self, deploychain) -> None:
        deployment_id = await deploychain.submit("repo", "main", "demo")
        await deploychain.wait_for(deployment_id)

        logs = await deploychain.get_build_logs(deployment_id)
        assert logs
        assert all(entry.deployment_id == deployment_id for entry in logs)

    async def test_health(self, deploychain, mock_publisher) -> None:
        assert (await deploychain.health()).status == HealthStatus.HEALTHY

        mock_publisher.set_connection_error("down")
        report = await deploychain.health()
        assert report.status == HealthStatus.DEGRADED
        assert report.failed_components == ["publisher"]

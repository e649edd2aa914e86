"""
Tests for deploychain.orchestration.health - HealthProbe
==========================================================

The probe composes record store reachability and publisher reachability.
Both checks always run; the report names every component that failed.
"""

from deploychain.core.enums import HealthStatus
from deploychain.infrastructure.record_store import InMemoryDeploymentRecordStore
from deploychain.orchestration.health import HealthProbe


class TestHealthProbe:

    async def test_healthy(self, record_store, mock_publisher) -> None:
        report = await HealthProbe(record_store, mock_publisher).check()

        assert report.status == HealthStatus.HEALTHY
        assert set(report.checks) == {"record_store", "publisher"}
        assert report.failed_components == []

    async def test_store_unreachable(self, mock_publisher) -> None:
        store = InMemoryDeploymentRecordStore()

        report = await HealthProbe(store, mock_publisher).check()

        assert report.status == HealthStatus.DEGRADED
        assert report.failed_components == ["record_store"]
        assert "not connected" in report.checks["record_store"].error

    async def test_publisher_unreachable(self, record_store, mock_publisher) -> None:
        mock_publisher.set_connection_error("connection refused")

        report = await HealthProbe(record_store, mock_publisher).check()

        assert report.status == HealthStatus.DEGRADED
        assert report.failed_components == ["publisher"]
        assert report.checks["publisher"].error == "connection refused"

    async def test_both_unreachable(self, mock_publisher) -> None:
        """A failing store check does not skip the publisher check."""
        mock_publisher.set_connection_error("connection refused")

        report = await HealthProbe(InMemoryDeploymentRecordStore(), mock_publisher).check()

        assert report.failed_components == ["record_store", "publisher"]

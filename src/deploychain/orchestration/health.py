"""
deploychain.orchestration.health - Collaborator Health Probe
==============================================================

Read-only reachability check of the record store and the publisher. Both
checks always run; the report is DEGRADED if either fails and names which.
"""

from __future__ import annotations

from typing import Awaitable, Callable

import structlog

from deploychain.core.enums import HealthStatus
from deploychain.core.models import ComponentHealth, HealthReport
from deploychain.infrastructure.record_store import DeploymentRecordStore
from deploychain.integrations.publisher.base import Publisher


logger = structlog.get_logger()

RECORD_STORE = "record_store"
PUBLISHER = "publisher"


class HealthProbe:
    """Composes record store and publisher reachability into one report.

    Example:
        >>> report = await HealthProbe(store, publisher).check()
        >>> report.failed_components
        ['publisher']
    """

    def __init__(self, store: DeploymentRecordStore, publisher: Publisher) -> None:
        self._store = store
        self._publisher = publisher
        self._logger = logger.bind(component="health_probe")

    async def check(self) -> HealthReport:
        checks = {
            RECORD_STORE: await self._probe(RECORD_STORE, self._store.ping),
            PUBLISHER: await self._probe(PUBLISHER, self._publisher.test_connection),
        }
        healthy = all(check.healthy for check in checks.values())
        return HealthReport(
            status=HealthStatus.HEALTHY if healthy else HealthStatus.DEGRADED,
            checks=checks,
        )

    async def _probe(
        self,
        name: str,
        probe: Callable[[], Awaitable[None]],
    ) -> ComponentHealth:
        try:
            await probe()
        except Exception as exc:
            self._logger.warning("health_check_failed", check=name, error=str(exc))
            return ComponentHealth(healthy=False, error=str(exc))
        return ComponentHealth(healthy=True)

"""Frontend and backend health of the configured environments."""

import asyncio
from typing import Any, Dict, List, Optional

from opsdash.clients.health_client import UNHEALTHY, HealthProbeClient
from opsdash.models.ops_models import EnvironmentHealth, HealthReport
from opsdash.services.base import BaseService


class HealthService(BaseService):

    def __init__(self, probe_client: HealthProbeClient, environments: List[Any], config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.client = probe_client
        self.environments = [e if isinstance(e, dict) else e.model_dump() for e in environments]

    async def _check(self, environment: Dict[str, Any]) -> EnvironmentHealth:
        backend_url = environment.get("backend_url")
        if backend_url:
            (status, latency), (backend_status, backend_latency) = await asyncio.gather(
                self.client.probe(environment["url"]), self.client.probe(backend_url)
            )
        else:
            status, latency = await self.client.probe(environment["url"])
            backend_status, backend_latency = None, None

        return EnvironmentHealth(
            name=environment["name"],
            url=environment["url"],
            status=status,
            response_time=latency,
            backend_status=backend_status,
            backend_response_time=backend_latency,
        )

    async def check_all(self) -> HealthReport:
        report = HealthReport(
            environments=list(await asyncio.gather(*(self._check(e) for e in self.environments))),
            timestamp=self.timestamp(),
        )
        unhealthy = [e.name for e in report.environments if e.status == UNHEALTHY]
        self.logger.info("Health check completed", environments=len(report.environments), unhealthy=unhealthy)
        return report

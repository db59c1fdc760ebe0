"""Lazily built, process-wide clients and services for the API routes."""

from typing import Any, Awaitable, Callable, Dict

import structlog

from opsdash.clients.azure.client_factory import AzureClientFactory
from opsdash.clients.azure.resource_client import ResourceClient
from opsdash.clients.azure.security_client import SecurityClient
from opsdash.clients.devops_client import DevOpsClient
from opsdash.clients.health_client import HealthProbeClient
from opsdash.clients.jira_client import JiraClient
from opsdash.clients.osv_client import OSVClient
from opsdash.config.settings import Settings, require
from opsdash.services.cost_service import CostService
from opsdash.services.health_service import HealthService
from opsdash.services.pipeline_service import PipelineService
from opsdash.services.security_service import SecurityScanService, TechStackService

logger = structlog.get_logger(__name__)


class ServiceRegistry:
    """Builds each client or service on first use and keeps it for the process.

    Required settings are checked when a component is first requested, so a
    missing variable only fails the endpoints that need it. Nothing is cached
    when construction fails; the next request tries again.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._instances: Dict[str, Any] = {}
        self._http_clients = []
        self._azure_factory = None
        self.logger = logger.bind(component="service_registry")

    async def _get(self, name: str, build: Callable[[], Awaitable[Any]]) -> Any:
        if name not in self._instances:
            self._instances[name] = await build()
            self.logger.debug("Registered component", component=name)
        return self._instances[name]

    async def _connected(self, client):
        await client.connect()
        self._http_clients.append(client)
        return client

    def azure_factory(self) -> AzureClientFactory:
        if self._azure_factory is None:
            config = self.settings.azure.model_dump()
            config["retry"] = self.settings.retry.model_dump()
            self._azure_factory = AzureClientFactory(config)
        return self._azure_factory

    async def resource_client(self) -> ResourceClient:
        return await self.azure_factory().get_resource_client()

    async def security_client(self) -> SecurityClient:
        return await self.azure_factory().get_security_client()

    async def cost_service(self) -> CostService:
        async def build():
            factory = self.azure_factory()
            return CostService(
                await factory.get_cost_client(),
                await factory.get_resource_client(),
                self.settings.cost.model_dump(),
            )

        return await self._get("cost_service", build)

    async def devops_client(self) -> DevOpsClient:
        async def build():
            devops = self.settings.devops
            config = devops.model_dump()
            config["org"] = require(devops.org, "AZURE_DEVOPS_ORG")
            config["pat"] = require(devops.pat, "AZURE_DEVOPS_PAT")
            return await self._connected(DevOpsClient(config))

        return await self._get("devops_client", build)

    async def pipeline_service(self) -> PipelineService:
        async def build():
            return PipelineService(await self.devops_client(), self.settings.devops.model_dump())

        return await self._get("pipeline_service", build)

    async def tech_stack_service(self) -> TechStackService:
        async def build():
            tech_stack = self.settings.tech_stack
            config = tech_stack.model_dump()
            config["project"] = require(tech_stack.project, "TECH_STACK_PROJECT")
            return TechStackService(await self.devops_client(), config)

        return await self._get("tech_stack_service", build)

    async def security_scan_service(self) -> SecurityScanService:
        async def build():
            osv = await self._connected(OSVClient(self.settings.osv.model_dump()))
            return SecurityScanService(
                await self.tech_stack_service(),
                osv,
                {"max_concurrency": self.settings.devops.max_concurrency},
            )

        return await self._get("security_scan_service", build)

    async def jira_client(self) -> JiraClient:
        async def build():
            jira = self.settings.jira
            config = jira.model_dump()
            config["email"] = require(jira.email, "JIRA_EMAIL")
            config["api_token"] = require(jira.api_token, "JIRA_API_TOKEN")
            config["domain"] = require(jira.domain, "JIRA_DOMAIN")
            config["project_key"] = require(jira.project_key, "JIRA_PROJECT_KEY")
            return await self._connected(JiraClient(config))

        return await self._get("jira_client", build)

    async def health_service(self) -> HealthService:
        async def build():
            health = self.settings.health
            probe = await self._connected(HealthProbeClient({"timeout_seconds": health.timeout_seconds}))
            return HealthService(probe, health.environments)

        return await self._get("health_service", build)

    async def close(self) -> None:
        """Disconnect every client opened so far."""
        for client in self._http_clients:
            await client.disconnect()
        self._http_clients = []
        if self._azure_factory is not None:
            await self._azure_factory.disconnect_all()
        self._instances = {}
        self.logger.info("Service registry closed")

"""FastAPI dependencies resolving shared state from ``app.state``."""

from typing import Any, Awaitable, Callable

from fastapi import Depends, Request, Response

from opsdash.api.registry import ServiceRegistry
from opsdash.clients.azure.resource_client import ResourceClient
from opsdash.clients.jira_client import JiraClient
from opsdash.config.settings import Settings
from opsdash.core.cache import ResponseCache
from opsdash.services.cost_service import CostService
from opsdash.services.health_service import HealthService
from opsdash.services.pipeline_service import PipelineService
from opsdash.services.security_service import SecurityScanService, TechStackService

CACHE_HEADER = "X-Cache"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_cache(request: Request) -> ResponseCache:
    return request.app.state.cache


def get_registry(request: Request) -> ServiceRegistry:
    return request.app.state.registry


async def get_cost_service(registry: ServiceRegistry = Depends(get_registry)) -> CostService:
    return await registry.cost_service()


async def get_resource_client(registry: ServiceRegistry = Depends(get_registry)) -> ResourceClient:
    return await registry.resource_client()


async def get_pipeline_service(registry: ServiceRegistry = Depends(get_registry)) -> PipelineService:
    return await registry.pipeline_service()


async def get_tech_stack_service(registry: ServiceRegistry = Depends(get_registry)) -> TechStackService:
    return await registry.tech_stack_service()


async def get_security_scan_service(registry: ServiceRegistry = Depends(get_registry)) -> SecurityScanService:
    return await registry.security_scan_service()


async def get_jira_client(registry: ServiceRegistry = Depends(get_registry)) -> JiraClient:
    return await registry.jira_client()


async def get_health_service(registry: ServiceRegistry = Depends(get_registry)) -> HealthService:
    return await registry.health_service()


async def cached(
    cache: ResponseCache,
    key: str,
    ttl_seconds: float,
    fetch: Callable[[], Awaitable[Any]],
    response: Response,
) -> Any:
    """Serve ``key`` through the cache and mark the response ``HIT`` or ``MISS``."""
    hit = cache.is_fresh(key, ttl_seconds)
    payload = await cache.get_or_refresh(key, ttl_seconds, fetch)
    response.headers[CACHE_HEADER] = "HIT" if hit else "MISS"
    return payload

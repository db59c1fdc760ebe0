"""Azure inventory, security posture and DevOps endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from opsdash.api.dependencies import (
    CACHE_HEADER,
    cached,
    get_cache,
    get_pipeline_service,
    get_registry,
    get_resource_client,
    get_security_scan_service,
    get_settings,
    get_tech_stack_service,
)
from opsdash.api.registry import ServiceRegistry
from opsdash.clients.azure.resource_client import ResourceClient
from opsdash.config.settings import Settings
from opsdash.core.cache import ResponseCache
from opsdash.core.exceptions import DashboardException
from opsdash.models.ops_models import ResourceInventory
from opsdash.services.pipeline_service import PipelineService
from opsdash.services.security_service import SecurityScanService, TechStackService

router = APIRouter(prefix="/api/azure", tags=["azure"])


@router.get("/resources")
async def resources(
    response: Response,
    settings: Settings = Depends(get_settings),
    cache: ResponseCache = Depends(get_cache),
    client: ResourceClient = Depends(get_resource_client),
):
    async def fetch():
        items = await client.list_resources()
        return ResourceInventory(total=len(items), resources=items)

    inventory = await cached(cache, "resources", settings.cache.resources_ttl_seconds, fetch, response)
    return inventory.to_response()


@router.get("/security-score")
async def security_score(
    response: Response,
    settings: Settings = Depends(get_settings),
    cache: ResponseCache = Depends(get_cache),
    registry: ServiceRegistry = Depends(get_registry),
):
    """Security Center score; reports ``enabled: false`` when assessments cannot be read."""

    async def fetch():
        client = await registry.security_client()
        return await client.get_security_score()

    try:
        score = await cached(cache, "security-score", settings.cache.security_score_ttl_seconds, fetch, response)
    except DashboardException as e:
        return JSONResponse(
            status_code=500,
            content={
                "enabled": False,
                "error": "Failed to fetch security score",
                "details": e.message,
                "scorePercentage": None,
            },
        )
    return score.to_response()


@router.get("/projects")
async def projects(service: PipelineService = Depends(get_pipeline_service)):
    return (await service.get_projects()).to_response()


@router.get("/pipeline-runs")
async def pipeline_runs(
    projects: Optional[str] = Query(None, description="Comma-separated project names; all projects when omitted"),
    include_scans: bool = Query(False, alias="includeScans"),
    service: PipelineService = Depends(get_pipeline_service),
):
    selected = [p.strip() for p in projects.split(",") if p.strip()] if projects else []
    runs = await service.get_pipeline_runs(selected, include_scans)
    return runs.to_response()


@router.get("/tech-stack")
async def tech_stack(service: TechStackService = Depends(get_tech_stack_service)):
    return (await service.get_tech_stack()).to_response()


@router.get("/security-scan")
async def security_scan(
    response: Response,
    settings: Settings = Depends(get_settings),
    cache: ResponseCache = Depends(get_cache),
    service: SecurityScanService = Depends(get_security_scan_service),
):
    """OSV scan of the detected tech stack, cached for an hour."""
    scan = await cached(cache, "security-scan", settings.cache.security_scan_ttl_seconds, service.scan, response)
    return scan.model_copy(update={"cached": response.headers[CACHE_HEADER] == "HIT"}).to_response()

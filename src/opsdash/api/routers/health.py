"""Environment health and process liveness."""

from fastapi import APIRouter, Depends

from opsdash.api.dependencies import get_health_service
from opsdash.services.health_service import HealthService

router = APIRouter(tags=["health"])


@router.get("/api/health")
async def environment_health(service: HealthService = Depends(get_health_service)):
    return (await service.check_all()).to_response()


@router.get("/livez")
async def livez():
    """Liveness probe: process is up."""
    return {"status": "alive"}

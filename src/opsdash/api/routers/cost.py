"""Cost endpoints: month-to-date summary, history, variance and project breakdown."""

from fastapi import APIRouter, Depends, Response

from opsdash.api.dependencies import cached, get_cache, get_cost_service, get_settings
from opsdash.config.settings import Settings
from opsdash.core.cache import ResponseCache
from opsdash.services.cost_service import CostService

router = APIRouter(prefix="/api/azure", tags=["cost"])


@router.get("/cost")
async def cost_summary(
    response: Response,
    settings: Settings = Depends(get_settings),
    cache: ResponseCache = Depends(get_cache),
    service: CostService = Depends(get_cost_service),
):
    """Month-to-date actual, month-end forecast and last month's total."""
    summary = await cached(cache, "cost", settings.cache.cost_ttl_seconds, service.get_cost_summary, response)
    return summary.to_response()


@router.get("/cost-history")
async def cost_history(
    response: Response,
    settings: Settings = Depends(get_settings),
    cache: ResponseCache = Depends(get_cache),
    service: CostService = Depends(get_cost_service),
):
    history = await cached(
        cache, "cost-history", settings.cache.cost_history_ttl_seconds, service.get_cost_history, response
    )
    return history.to_response()


@router.get("/cost-variance")
async def cost_variance(
    response: Response,
    settings: Settings = Depends(get_settings),
    cache: ResponseCache = Depends(get_cache),
    service: CostService = Depends(get_cost_service),
):
    variance = await cached(
        cache, "cost-variance", settings.cache.cost_variance_ttl_seconds, service.get_cost_variance, response
    )
    return variance.to_response()


@router.get("/cost-by-rg")
async def cost_by_resource_group(
    response: Response,
    settings: Settings = Depends(get_settings),
    cache: ResponseCache = Depends(get_cache),
    service: CostService = Depends(get_cost_service),
):
    """Last month's actual and this month's projection per project tag."""
    breakdown = await cached(
        cache, "cost-by-rg", settings.cache.cost_by_rg_ttl_seconds, service.get_cost_by_resource_group, response
    )
    return breakdown.to_response()

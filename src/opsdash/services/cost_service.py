"""Cost views composed from Cost Management queries and resource group tags."""

import asyncio
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from opsdash.analytics.allocation import (
    allocate_costs_to_projects,
    build_project_tag_map,
    find_untagged_costs,
    sum_by_dimension,
)
from opsdash.analytics.forecasting import days_in_month, forecast_month_end
from opsdash.analytics.history import build_cost_history
from opsdash.analytics.variance import detect_cost_variance
from opsdash.clients.azure.cost_client import CostClient
from opsdash.clients.azure.resource_client import ResourceClient
from opsdash.core.utils import first_day_of_month, shift_months
from opsdash.models.cost_models import (
    CostBreakdown,
    CostDimension,
    CostHistory,
    CostSummary,
    CostVariance,
    Granularity,
    UntaggedCost,
)
from opsdash.services.base import BaseService


class CostService(BaseService):
    """Builds the cost summary, history, variance and project breakdown.

    Every method takes an optional ``today`` so month boundaries are
    deterministic; it defaults to the current UTC date.
    """

    def __init__(self, cost_client: CostClient, resource_client: ResourceClient, config: Dict[str, Any]):
        super().__init__(config)
        self.cost_client = cost_client
        self.resource_client = resource_client
        self.history_months = config.get("history_months", 12)
        self.variance_threshold = config.get("variance_threshold", 100.0)
        self.display_threshold = config.get("display_threshold", 1.0)
        self.project_tag_key = config.get("project_tag_key", "project")

    @staticmethod
    def _last_month(today: date):
        start = shift_months(today, -1)
        return start, first_day_of_month(today) - timedelta(days=1)

    async def get_cost_summary(self, today: Optional[date] = None) -> CostSummary:
        """Month-to-date actual, linear month-end forecast and last month's total."""
        today = today or self.today()
        last_start, last_end = self._last_month(today)

        current_rows, last_rows = await asyncio.gather(
            self.cost_client.query_costs(first_day_of_month(today), today),
            self.cost_client.query_costs(last_start, last_end),
        )

        actual = sum(row.cost for row in current_rows)
        summary = CostSummary(
            actual_cost=actual,
            forecast_cost=forecast_month_end(actual, today.day, days_in_month(today.year, today.month)),
            last_month_cost=sum(row.cost for row in last_rows),
            currency=current_rows[0].currency if current_rows else "USD",
        )
        self.logger.info(
            "Built cost summary",
            actual=summary.actual_cost,
            forecast=summary.forecast_cost,
            last_month=summary.last_month_cost,
        )
        return summary

    async def get_cost_history(self, today: Optional[date] = None) -> CostHistory:
        today = today or self.today()
        rows = await self.cost_client.query_costs(
            shift_months(today, -self.history_months), today, Granularity.MONTHLY
        )
        return CostHistory(history=build_cost_history(rows, today))

    async def get_cost_variance(self, today: Optional[date] = None) -> CostVariance:
        today = today or self.today()
        rows = await self.cost_client.query_costs(
            shift_months(today, -self.history_months), today, Granularity.MONTHLY, CostDimension.SERVICE_NAME
        )
        changes = detect_cost_variance(rows, today.strftime("%Y-%m"), self.variance_threshold)
        return CostVariance(changes=changes)

    async def get_cost_by_resource_group(self, today: Optional[date] = None) -> CostBreakdown:
        """Last month's actual and this month's projection per project tag.

        The projection is the run-rate forecast of each resource group's
        month-to-date spend.
        """
        today = today or self.today()
        last_start, last_end = self._last_month(today)

        resource_groups, last_rows, current_rows = await asyncio.gather(
            self.resource_client.list_resource_groups(),
            self.cost_client.query_costs(last_start, last_end, group_by=CostDimension.RESOURCE_GROUP),
            self.cost_client.query_costs(first_day_of_month(today), today, group_by=CostDimension.RESOURCE_GROUP),
        )

        tag_map = build_project_tag_map(resource_groups, self.project_tag_key)
        total_days = days_in_month(today.year, today.month)
        projected = {
            rg: forecast_month_end(cost, today.day, total_days)
            for rg, cost in sum_by_dimension(current_rows).items()
        }

        breakdown = allocate_costs_to_projects(
            sum_by_dimension(last_rows), projected, tag_map, self.display_threshold
        )
        self.logger.info(
            "Built project cost breakdown",
            tagged_groups=len(tag_map),
            entries=len(breakdown.breakdown),
            total_actual=breakdown.total_actual,
        )
        return breakdown

    async def get_untagged_costs(self, today: Optional[date] = None) -> List[UntaggedCost]:
        """Last month's spend of resource groups missing the project tag."""
        today = today or self.today()
        last_start, last_end = self._last_month(today)

        resource_groups, rows = await asyncio.gather(
            self.resource_client.list_resource_groups(),
            self.cost_client.query_costs(last_start, last_end, group_by=CostDimension.RESOURCE_GROUP),
        )
        tag_map = build_project_tag_map(resource_groups, self.project_tag_key)
        return find_untagged_costs(sum_by_dimension(rows), tag_map)

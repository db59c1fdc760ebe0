# src/opsdash/clients/azure/cost_client.py
"""Azure Cost Management client: time-windowed aggregate cost queries."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional

from azure.core.exceptions import AzureError
from azure.mgmt.costmanagement import CostManagementClient
from azure.mgmt.costmanagement.models import (
    ForecastAggregation,
    ForecastDataset,
    ForecastDefinition,
    ForecastTimePeriod,
    QueryAggregation,
    QueryDataset,
    QueryDefinition,
    QueryGrouping,
    QueryTimePeriod,
    TimeframeType,
)

from opsdash.core.base_client import AzureSdkClient
from opsdash.core.exceptions import UpstreamFetchException
from opsdash.core.utils import is_rate_limited, retry_with_backoff
from opsdash.mappers.cost_mapper import map_query_result
from opsdash.models.cost_models import CostDimension, CostRow, Granularity, QueryKind


def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _end_of_day(day: date) -> datetime:
    return datetime.combine(day, time(23, 59, 59), tzinfo=timezone.utc)


class CostClient(AzureSdkClient):
    """Azure Cost Management client.

    ``query_costs`` is the single entry point: it builds a ``Usage`` query
    summing ``PreTaxCost`` over ``[start, end]`` (both inclusive calendar
    days), optionally bucketed by day or month and grouped by one dimension,
    and returns normalised ``CostRow`` objects.

    Rate-limited responses (HTTP 429) are retried with exponential backoff
    using the ``retry`` section of ``config``; every other upstream error is
    raised immediately as ``UpstreamFetchException``.
    """

    source = "Azure Cost Management"

    def __init__(self, credential, subscription_id: str, config: Dict[str, Any], sdk_client: Any = None):
        super().__init__(credential, subscription_id, config, "CostClient", sdk_client=sdk_client)
        retry_config = config.get("retry", {})
        self._query_usage = retry_with_backoff(
            max_retries=retry_config.get("attempts", 3),
            backoff_factor=retry_config.get("backoff_factor", 1.0),
            max_wait=retry_config.get("max_wait", 30.0),
            retry_on=is_rate_limited,
        )(self._query_usage_once)

    def _create_client(self):
        return CostManagementClient(credential=self.credential)

    async def health_check(self) -> bool:
        """Check Cost Management client health with a one-day query."""
        try:
            if not self._connected or not self._client:
                return False
            today = datetime.now(timezone.utc).date()
            await self._query_usage_once(self.build_query(today - timedelta(days=1), today))
            return True
        except Exception as e:
            self.logger.warning("Cost Management health check failed", error=str(e))
            return False

    def build_query(
        self,
        start: date,
        end: date,
        granularity: Granularity = Granularity.NONE,
        group_by: Optional[CostDimension] = None,
    ) -> QueryDefinition:
        dataset = QueryDataset(
            granularity=None if granularity == Granularity.NONE else granularity.value,
            aggregation={"totalCost": QueryAggregation(name="PreTaxCost", function="Sum")},
            grouping=[QueryGrouping(type="Dimension", name=group_by.value)] if group_by else None,
        )
        return QueryDefinition(
            type="Usage",
            timeframe=TimeframeType.CUSTOM,
            time_period=QueryTimePeriod(from_property=_start_of_day(start), to=_end_of_day(end)),
            dataset=dataset,
        )

    def build_forecast_query(self, start: date, end: date) -> ForecastDefinition:
        # forecasts are always daily upstream and cannot be grouped
        dataset = ForecastDataset(
            granularity=Granularity.DAILY.value,
            aggregation={"totalCost": ForecastAggregation(name="Cost", function="Sum")},
        )
        return ForecastDefinition(
            type="Usage",
            timeframe="Custom",
            time_period=ForecastTimePeriod(from_property=_start_of_day(start), to=_end_of_day(end)),
            dataset=dataset,
            include_actual_cost=False,
            include_fresh_partial_cost=False,
        )

    async def _query_usage_once(self, definition):
        if isinstance(definition, ForecastDefinition):
            return await self._call(self._client.forecast.usage, self.scope, definition)
        return await self._call(self._client.query.usage, self.scope, definition)

    async def query_costs(
        self,
        start: date,
        end: date,
        granularity: Granularity = Granularity.NONE,
        group_by: Optional[CostDimension] = None,
        kind: QueryKind = QueryKind.ACTUAL,
    ) -> List[CostRow]:
        """Aggregate cost for ``[start, end]`` as ``CostRow`` objects.

        ``QueryKind.FORECAST`` asks Cost Management for its own projection of
        the window instead of actual spend. The SDK's ``ForecastDataset`` has
        no grouping, so it cannot project per resource group; the dashboard
        endpoints project with the run-rate forecaster and none of them
        issue forecast queries. The mode is kept for callers that want the
        subscription-wide Azure projection.
        """
        self._ensure_connected()
        if kind == QueryKind.FORECAST:
            if group_by is not None:
                raise ValueError("Forecast queries cannot be grouped")
            definition = self.build_forecast_query(start, end)
        else:
            definition = self.build_query(start, end, granularity, group_by)

        self.logger.info(
            "Querying costs",
            kind=kind.value,
            start=start.isoformat(),
            end=end.isoformat(),
            granularity=granularity.value,
            group_by=group_by.value if group_by else None,
        )
        try:
            result = await self._query_usage(definition)
        except AzureError as e:
            self.logger.error("Cost query failed", error=str(e))
            raise UpstreamFetchException(self.source, getattr(e, "message", None) or str(e), getattr(e, "status_code", None))

        rows = map_query_result(result, granularity, group_by)
        self.logger.info("Cost query completed", rows=len(rows))
        return rows

"""Cost aggregation and forecasting models."""

from enum import Enum
from typing import List, Optional

from pydantic import Field

from .base_models import DashboardModel


class Granularity(str, Enum):
    NONE = "None"
    DAILY = "Daily"
    MONTHLY = "Monthly"


class CostDimension(str, Enum):
    RESOURCE_GROUP = "ResourceGroup"
    SERVICE_NAME = "ServiceName"


class QueryKind(str, Enum):
    ACTUAL = "Actual"
    FORECAST = "Forecast"


class Impact(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class CostRow(DashboardModel):
    """One aggregated cost observation for a dimension in a billing period."""

    dimension_value: str = ""
    cost: float = 0.0
    period_key: str = ""
    currency: str = "USD"


class CostSummary(DashboardModel):
    actual_cost: float
    forecast_cost: float
    last_month_cost: float
    currency: str = "USD"


class CostBreakdownEntry(DashboardModel):
    name: str
    actual: float = 0.0
    projected: float = 0.0


class CostBreakdown(DashboardModel):
    breakdown: List[CostBreakdownEntry] = Field(default_factory=list)
    total_actual: float = 0.0
    total_projected: float = 0.0


class HistoryPoint(DashboardModel):
    period_key: str
    period_label: str
    actual_cost: Optional[float] = None
    forecast_cost: Optional[float] = None


class CostHistory(DashboardModel):
    history: List[HistoryPoint] = Field(default_factory=list)


class VarianceChange(DashboardModel):
    period_key: str
    period_label: str
    dimension: str
    delta: float
    previous: float
    current: float
    percent_change: float
    impact: Impact


class CostVariance(DashboardModel):
    changes: List[VarianceChange] = Field(default_factory=list)


class UntaggedCost(DashboardModel):
    name: str
    cost: float

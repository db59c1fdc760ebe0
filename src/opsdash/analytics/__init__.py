# src/opsdash/analytics/__init__.py
"""
Cost analytics: allocation, run-rate forecasting, history and variance.
"""

from .allocation import allocate_costs_to_projects, build_project_tag_map, find_untagged_costs, sum_by_dimension
from .forecasting import days_in_month, forecast_month_end, run_rate
from .history import build_cost_history
from .variance import classify_impact, detect_cost_variance

__all__ = [
    "allocate_costs_to_projects",
    "build_project_tag_map",
    "find_untagged_costs",
    "sum_by_dimension",
    "days_in_month",
    "forecast_month_end",
    "run_rate",
    "build_cost_history",
    "classify_impact",
    "detect_cost_variance",
]

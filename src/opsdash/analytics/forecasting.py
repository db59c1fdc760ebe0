"""Linear run-rate forecasting of month-to-date spend."""

import calendar


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def run_rate(actual_cost: float, days_elapsed: int) -> float:
    """Average spend per elapsed day; zero before any day has elapsed."""
    if days_elapsed == 0:
        return 0.0
    return actual_cost / days_elapsed


def forecast_month_end(actual_cost: float, days_elapsed: int, total_days: int) -> float:
    """Project a full-month total from month-to-date spend.

    Negative actuals (credits, refunds) are projected like any other spend.
    """
    return run_rate(actual_cost, days_elapsed) * total_days

"""Chart-ready monthly cost history with a current-month forecast point."""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List

import structlog

from opsdash.analytics.forecasting import days_in_month, forecast_month_end
from opsdash.core.utils import month_label
from opsdash.models.cost_models import CostRow, HistoryPoint

logger = structlog.get_logger(__name__)


def build_cost_history(rows: Iterable[CostRow], today: date) -> List[HistoryPoint]:
    """Bucket monthly cost rows chronologically and attach the forecast.

    The point for ``today``'s month, while the month is incomplete, carries
    only ``forecast_cost`` (the run-rate projection of its month-to-date
    actual). The month before it repeats its actual as ``forecast_cost`` so the
    forecast line joins the last complete month. Without a point for the
    current month the series stays purely actual.
    """
    totals: Dict[str, float] = defaultdict(float)
    for row in rows:
        if row.period_key:
            totals[row.period_key] += row.cost

    history: List[HistoryPoint] = []
    for period_key in sorted(totals):
        year, month = (int(part) for part in period_key.split("-")[:2])
        history.append(HistoryPoint(
            period_key=period_key,
            period_label=month_label(year, month),
            actual_cost=totals[period_key],
        ))

    current_key = today.strftime("%Y-%m")
    total_days = days_in_month(today.year, today.month)

    for index, point in enumerate(history):
        if point.period_key != current_key or today.day >= total_days:
            continue
        point.forecast_cost = forecast_month_end(point.actual_cost, today.day, total_days)
        point.actual_cost = None
        if index > 0:
            previous = history[index - 1]
            previous.forecast_cost = previous.actual_cost
        logger.debug(
            "Attached current month forecast",
            period=current_key,
            forecast=point.forecast_cost,
            days_elapsed=today.day,
        )

    return history

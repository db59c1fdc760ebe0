"""Month-over-month cost variance detection per service."""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

import structlog

from opsdash.core.utils import month_label
from opsdash.models.cost_models import CostRow, Impact, VarianceChange

logger = structlog.get_logger(__name__)

DEFAULT_THRESHOLD = 100.0


def classify_impact(delta: float) -> Impact:
    magnitude = abs(delta)
    if magnitude > 100:
        return Impact.HIGH
    if magnitude > 50:
        return Impact.MEDIUM
    return Impact.LOW


def percent_change(previous: float, current: float) -> float:
    if previous > 0:
        return (current - previous) / previous * 100
    if current > 0:
        return 100.0
    return 0.0


def detect_cost_variance(
    rows: Iterable[CostRow],
    current_period: Optional[str] = None,
    threshold: float = DEFAULT_THRESHOLD,
) -> List[VarianceChange]:
    """Report per-dimension changes between consecutive complete months.

    ``current_period`` (``YYYY-MM``) is the in-progress month and is left out
    of the comparison. Only changes with ``abs(delta) > threshold`` are kept;
    with the default threshold every reported change is ``High`` impact.
    Results are ordered by month, then by the size of the change.
    """
    costs: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    months = set()

    for row in rows:
        if not row.period_key or row.period_key == current_period:
            continue
        months.add(row.period_key)
        costs[row.dimension_value][row.period_key] += row.cost

    sorted_months = sorted(months)
    if len(sorted_months) < 2:
        logger.info("Not enough complete months for variance", months=sorted_months)
        return []

    changes: List[VarianceChange] = []
    for prev_month, curr_month in zip(sorted_months, sorted_months[1:]):
        year, month = (int(part) for part in curr_month.split("-")[:2])
        label = month_label(year, month)
        for dimension, by_month in costs.items():
            previous = by_month.get(prev_month, 0.0)
            current = by_month.get(curr_month, 0.0)
            delta = current - previous
            if abs(delta) <= threshold:
                continue
            changes.append(VarianceChange(
                period_key=curr_month,
                period_label=label,
                dimension=dimension,
                delta=delta,
                previous=previous,
                current=current,
                percent_change=percent_change(previous, current),
                impact=classify_impact(delta),
            ))

    changes.sort(key=lambda change: (change.period_key, -abs(change.delta), change.dimension))
    logger.debug("Detected cost variance", months=len(sorted_months), changes=len(changes))
    return changes

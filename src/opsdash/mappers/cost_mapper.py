"""Cost Management query result mapping utilities.

The Cost Management API returns a tabular result (``columns`` + ``rows``)
whose column order is not guaranteed, so every position is looked up by name
before rows are turned into ``CostRow`` objects.
"""

from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence

import structlog

from opsdash.core.exceptions import ColumnNotFoundException
from opsdash.models.cost_models import CostDimension, CostRow, Granularity

logger = structlog.get_logger(__name__)

COST_COLUMNS = ("PreTaxCost", "Cost")
PERIOD_COLUMNS = ("BillingMonth", "UsageDate")
CURRENCY_COLUMNS = ("Currency",)
DIMENSION_COLUMNS = {
    CostDimension.RESOURCE_GROUP: ("ResourceGroup", "ResourceGroupName"),
    CostDimension.SERVICE_NAME: ("ServiceName",),
}


def column_names(columns: Iterable[Any]) -> List[str]:
    """Column names from SDK ``QueryColumn`` objects or plain dicts."""
    names = []
    for column in columns or []:
        if isinstance(column, dict):
            names.append(column.get("name"))
        else:
            names.append(getattr(column, "name", None))
    return names


def find_column(columns: Sequence[Any], candidates: Sequence[str]) -> int:
    """Index of the first column whose name matches one of ``candidates``."""
    names = column_names(columns)
    for candidate in candidates:
        if candidate in names:
            return names.index(candidate)
    raise ColumnNotFoundException(candidates, [n for n in names if n])


def find_optional_column(columns: Sequence[Any], candidates: Sequence[str]) -> Optional[int]:
    try:
        return find_column(columns, candidates)
    except ColumnNotFoundException:
        return None


def normalize_dimension_value(value: Any, dimension: Optional[CostDimension]) -> str:
    """Bare, comparable dimension key.

    Full resource IDs are reduced to their trailing segment and resource group
    names are lowercased so they match the tag map keys.
    """
    if value is None or value == "":
        return "Unknown"
    text = str(value)
    if "/" in text:
        return text.rstrip("/").split("/")[-1].lower()
    if dimension == CostDimension.RESOURCE_GROUP:
        return text.lower()
    return text


def parse_usage_date(usage_date_raw: Any) -> Optional[datetime]:
    """Parse usage date from various formats."""
    if usage_date_raw is None or usage_date_raw == "":
        return None

    try:
        # Handle integer/float date formats (e.g., 20250716)
        if isinstance(usage_date_raw, (int, float)):
            date_str = str(int(usage_date_raw))
            if len(date_str) == 8:
                return datetime.strptime(date_str, '%Y%m%d')
            return None

        if isinstance(usage_date_raw, str):
            if len(usage_date_raw) == 8 and usage_date_raw.isdigit():
                return datetime.strptime(usage_date_raw, '%Y%m%d')
            if 'T' in usage_date_raw:
                return datetime.fromisoformat(usage_date_raw.replace('Z', '+00:00'))
            if '-' in usage_date_raw:
                return datetime.strptime(usage_date_raw[:10], '%Y-%m-%d')
            return None

        if hasattr(usage_date_raw, 'strftime'):
            return usage_date_raw

        return None

    except (ValueError, TypeError) as e:
        logger.warning(f"Failed to parse usage date: {usage_date_raw}, error: {e}")
        return None


def period_key_for(usage_date_raw: Any, granularity: Granularity) -> Optional[str]:
    """``YYYY-MM`` for monthly, ``YYYY-MM-DD`` for daily, ``""`` for no granularity."""
    if granularity == Granularity.NONE:
        return ""
    parsed = parse_usage_date(usage_date_raw)
    if parsed is None:
        return None
    if granularity == Granularity.MONTHLY:
        return parsed.strftime('%Y-%m')
    return parsed.strftime('%Y-%m-%d')


def _to_float(value: Any) -> float:
    if value is None:
        return 0.0
    return float(value)


def map_query_result(
    result: Any,
    granularity: Granularity = Granularity.NONE,
    group_by: Optional[CostDimension] = None,
) -> List[CostRow]:
    """Turn a Cost Management ``QueryResult`` into ``CostRow`` objects."""
    if isinstance(result, dict):
        columns = result.get("columns") or []
        rows = result.get("rows") or []
    else:
        columns = getattr(result, "columns", None) or []
        rows = getattr(result, "rows", None) or []

    if not rows:
        return []

    cost_idx = find_column(columns, COST_COLUMNS)
    period_idx = find_column(columns, PERIOD_COLUMNS) if granularity != Granularity.NONE else None
    group_idx = find_column(columns, DIMENSION_COLUMNS[group_by]) if group_by else None
    currency_idx = find_optional_column(columns, CURRENCY_COLUMNS)

    cost_rows: List[CostRow] = []
    for row in rows:
        try:
            period_key = period_key_for(row[period_idx], granularity) if period_idx is not None else ""
            if period_key is None:
                logger.warning("Skipping cost row with unparseable period", row=row)
                continue
            cost_rows.append(CostRow(
                dimension_value=normalize_dimension_value(row[group_idx], group_by) if group_idx is not None else "",
                cost=_to_float(row[cost_idx]),
                period_key=period_key,
                currency=str(row[currency_idx]) if currency_idx is not None and row[currency_idx] else "USD",
            ))
        except (ValueError, TypeError, IndexError) as e:
            logger.warning(f"Error processing cost row: {e}", row=row)
            continue

    return cost_rows

from .cost_mapper import find_column, map_query_result, normalize_dimension_value, parse_usage_date
from .resource_mapper import ResourceDataMapper

__all__ = [
    "find_column",
    "map_query_result",
    "normalize_dimension_value",
    "parse_usage_date",
    "ResourceDataMapper",
]

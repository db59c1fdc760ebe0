"""Tag-based cost allocation of resource groups to projects."""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping

import structlog

from opsdash.models.cost_models import CostBreakdown, CostBreakdownEntry, CostRow, UntaggedCost

logger = structlog.get_logger(__name__)

OTHER_BUCKET = "Other"


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def build_project_tag_map(resource_groups: Iterable[Any], tag_key: str = "project") -> Dict[str, str]:
    """Map lowercased resource group name to the value of its project tag.

    Accepts SDK ``ResourceGroup`` objects or dicts with ``name`` and ``tags``.
    Groups without the tag are left out.
    """
    tag_map: Dict[str, str] = {}
    for rg in resource_groups:
        name = _field(rg, "name")
        tags = _field(rg, "tags") or {}
        project = tags.get(tag_key)
        if name and project:
            tag_map[name.lower()] = project
    return tag_map


def sum_by_dimension(rows: Iterable[CostRow]) -> Dict[str, float]:
    """Sum row costs per dimension value; the upstream does not dedup rows."""
    totals: Dict[str, float] = defaultdict(float)
    for row in rows:
        totals[row.dimension_value] += row.cost
    return dict(totals)


def allocate_costs_to_projects(
    actual_by_rg: Mapping[str, float],
    projected_by_rg: Mapping[str, float],
    tag_map: Mapping[str, str],
    display_threshold: float = 1.0,
) -> CostBreakdown:
    """Roll resource group costs up to project labels.

    Untagged groups land in ``Other``. Entries whose actual and projected
    costs are both at or below ``display_threshold`` are dropped. Projects are
    ordered by name with ``Other`` last.
    """
    projects: Dict[str, Dict[str, float]] = {}
    other = {"actual": 0.0, "projected": 0.0}

    for rg_name in set(actual_by_rg) | set(projected_by_rg):
        actual = actual_by_rg.get(rg_name, 0.0)
        projected = projected_by_rg.get(rg_name, 0.0)
        project = tag_map.get(rg_name.lower())
        bucket = projects.setdefault(project, {"actual": 0.0, "projected": 0.0}) if project else other
        bucket["actual"] += actual
        bucket["projected"] += projected

    def visible(values: Dict[str, float]) -> bool:
        return values["actual"] > display_threshold or values["projected"] > display_threshold

    breakdown: List[CostBreakdownEntry] = [
        CostBreakdownEntry(name=name, actual=values["actual"], projected=values["projected"])
        for name, values in sorted(projects.items(), key=lambda item: item[0].lower())
        if visible(values)
    ]
    if visible(other):
        breakdown.append(CostBreakdownEntry(name=OTHER_BUCKET, **other))

    logger.debug(
        "Allocated resource group costs",
        resource_groups=len(set(actual_by_rg) | set(projected_by_rg)),
        projects=len(projects),
        visible_entries=len(breakdown),
    )

    return CostBreakdown(
        breakdown=breakdown,
        total_actual=sum(entry.actual for entry in breakdown),
        total_projected=sum(entry.projected for entry in breakdown),
    )


def find_untagged_costs(
    cost_by_rg: Mapping[str, float],
    tag_map: Mapping[str, str],
    min_cost: float = 0.01,
) -> List[UntaggedCost]:
    """Resource groups without a project tag, most expensive first."""
    untagged = [
        UntaggedCost(name=name, cost=cost)
        for name, cost in cost_by_rg.items()
        if name.lower() not in tag_map and cost > min_cost
    ]
    return sorted(untagged, key=lambda item: item.cost, reverse=True)

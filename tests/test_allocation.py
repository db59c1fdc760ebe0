from types import SimpleNamespace

from opsdash.analytics.allocation import (
    OTHER_BUCKET,
    allocate_costs_to_projects,
    build_project_tag_map,
    find_untagged_costs,
    sum_by_dimension,
)
from opsdash.models.cost_models import CostRow


class TestBuildProjectTagMap:
    def test_maps_lowercased_names_to_project_tag(self):
        groups = [
            {"name": "RG-Saral-Prod", "tags": {"project": "Saral"}},
            {"name": "rg-shared", "tags": {"owner": "ops"}},
            {"name": "rg-empty", "tags": None},
        ]
        assert build_project_tag_map(groups) == {"rg-saral-prod": "Saral"}

    def test_accepts_sdk_objects_and_custom_tag_key(self):
        groups = [SimpleNamespace(name="RG1", tags={"team": "Platform"})]
        assert build_project_tag_map(groups, tag_key="team") == {"rg1": "Platform"}

    def test_empty_input_yields_empty_map(self):
        assert build_project_tag_map([]) == {}


class TestAllocateCostsToProjects:
    def test_tagged_group_by_name_and_untagged_in_other(self):
        tag_map = build_project_tag_map([{"name": "RG1", "tags": {"project": "Saral"}}, {"name": "RG2"}])

        result = allocate_costs_to_projects({"rg1": 100.0, "rg2": 50.0}, {}, tag_map)

        assert [(e.name, e.actual) for e in result.breakdown] == [("Saral", 100.0), (OTHER_BUCKET, 50.0)]
        assert result.total_actual == 150.0

    def test_projects_sorted_case_insensitively_with_other_last(self):
        tag_map = {"a": "zeta", "b": "Alpha", "c": "beta"}
        actual = {"a": 10.0, "b": 10.0, "c": 10.0, "untagged": 10.0}

        names = [e.name for e in allocate_costs_to_projects(actual, {}, tag_map).breakdown]

        assert names == ["Alpha", "beta", "zeta", "Other"]

    def test_entries_at_or_below_threshold_are_dropped(self):
        tag_map = {"tiny": "Tiny", "cheap": "Cheap", "future": "Future"}
        actual = {"tiny": 0.5, "cheap": 1.0, "future": 0.2}
        projected = {"tiny": 0.9, "cheap": 1.0, "future": 40.0}

        result = allocate_costs_to_projects(actual, projected, tag_map)

        assert [e.name for e in result.breakdown] == ["Future"]
        assert result.total_actual == 0.2
        assert result.total_projected == 40.0

    def test_groups_sharing_a_project_are_summed(self):
        tag_map = {"rg-web": "Saral", "rg-db": "Saral"}
        result = allocate_costs_to_projects(
            {"rg-web": 70.0, "rg-db": 30.0}, {"rg-web": 80.0, "rg-db": 40.0}, tag_map
        )

        assert len(result.breakdown) == 1
        assert result.breakdown[0].actual == 100.0
        assert result.breakdown[0].projected == 120.0

    def test_response_uses_camel_case_totals(self):
        body = allocate_costs_to_projects({"rg": 5.0}, {}, {}).to_response()
        assert body == {
            "breakdown": [{"name": "Other", "actual": 5.0, "projected": 0.0}],
            "totalActual": 5.0,
            "totalProjected": 0.0,
        }


def test_sum_by_dimension_adds_duplicate_rows():
    rows = [
        CostRow(dimension_value="rg1", cost=10.0),
        CostRow(dimension_value="rg1", cost=5.0),
        CostRow(dimension_value="rg2", cost=1.0),
    ]
    assert sum_by_dimension(rows) == {"rg1": 15.0, "rg2": 1.0}


def test_untagged_costs_sorted_descending_and_ignore_pennies():
    costs = {"rg-tagged": 500.0, "rg-a": 20.0, "rg-b": 80.0, "rg-penny": 0.005}
    result = find_untagged_costs(costs, {"rg-tagged": "Saral"})
    assert [(u.name, u.cost) for u in result] == [("rg-b", 80.0), ("rg-a", 20.0)]

import pytest

from opsdash.analytics.variance import classify_impact, detect_cost_variance, percent_change
from opsdash.models.cost_models import CostRow, Impact


def row(service: str, period_key: str, cost: float) -> CostRow:
    return CostRow(dimension_value=service, cost=cost, period_key=period_key)


def test_single_month_has_no_changes():
    assert detect_cost_variance([row("svcA", "2025-01", 100.0), row("svcB", "2025-01", 900.0)]) == []


def test_month_over_month_increase_is_reported():
    changes = detect_cost_variance([row("svcA", "2025-01", 100.0), row("svcA", "2025-02", 250.0)])

    assert len(changes) == 1
    change = changes[0]
    assert change.delta == 150.0
    assert change.percent_change == pytest.approx(150.0)
    assert change.impact == "High"
    assert change.period_label == "Feb 25"
    assert (change.previous, change.current) == (100.0, 250.0)


def test_in_progress_month_is_excluded():
    rows = [row("svcA", "2025-01", 100.0), row("svcA", "2025-02", 900.0)]
    assert detect_cost_variance(rows, current_period="2025-02") == []


def test_changes_within_threshold_are_dropped():
    rows = [row("svcA", "2025-01", 100.0), row("svcA", "2025-02", 200.0)]
    assert detect_cost_variance(rows) == []


def test_service_missing_in_one_month_counts_as_zero():
    rows = [row("svcA", "2025-01", 10.0), row("svcNew", "2025-02", 300.0), row("svcA", "2025-02", 10.0)]

    changes = detect_cost_variance(rows)

    assert [(c.dimension, c.previous, c.percent_change) for c in changes] == [("svcNew", 0.0, 100.0)]


def test_sorted_by_month_then_magnitude():
    rows = [
        row("small", "2025-01", 0.0), row("small", "2025-02", 150.0), row("small", "2025-03", 150.0),
        row("large", "2025-01", 1000.0), row("large", "2025-02", 500.0), row("large", "2025-03", 2000.0),
    ]

    changes = detect_cost_variance(rows)

    assert [(c.period_key, c.dimension, c.delta) for c in changes] == [
        ("2025-02", "large", -500.0),
        ("2025-02", "small", 150.0),
        ("2025-03", "large", 1500.0),
    ]


def test_lower_threshold_lets_medium_and_low_through():
    rows = [
        row("svcA", "2025-01", 100.0), row("svcA", "2025-02", 160.0),
        row("svcB", "2025-01", 100.0), row("svcB", "2025-02", 130.0),
    ]

    changes = detect_cost_variance(rows, threshold=10.0)

    assert {c.dimension: c.impact for c in changes} == {"svcA": "Medium", "svcB": "Low"}


@pytest.mark.parametrize("delta, impact", [(101, Impact.HIGH), (-101, Impact.HIGH), (100, Impact.MEDIUM), (50, Impact.LOW)])
def test_impact_tiers(delta, impact):
    assert classify_impact(delta) == impact


def test_percent_change_edge_cases():
    assert percent_change(0.0, 0.0) == 0.0
    assert percent_change(0.0, 5.0) == 100.0
    assert percent_change(200.0, 100.0) == pytest.approx(-50.0)

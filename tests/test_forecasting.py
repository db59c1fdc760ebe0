import pytest

from opsdash.analytics.forecasting import days_in_month, forecast_month_end, run_rate


@pytest.mark.parametrize(
    "actual, days_elapsed, total_days, expected",
    [
        (500.0, 15, 30, 1000.0),
        (310.0, 10, 31, 961.0),
        (28.0, 28, 28, 28.0),
        (-60.0, 3, 30, -600.0),
    ],
)
def test_forecast_is_daily_run_rate_times_days_in_month(actual, days_elapsed, total_days, expected):
    assert forecast_month_end(actual, days_elapsed, total_days) == pytest.approx(expected)
    assert forecast_month_end(actual, days_elapsed, total_days) == pytest.approx(
        (actual / days_elapsed) * total_days
    )


def test_zero_days_elapsed_forecasts_zero():
    assert run_rate(250.0, 0) == 0.0
    assert forecast_month_end(250.0, 0, 31) == 0.0


def test_days_in_month_handles_leap_years():
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2025, 2) == 28
    assert days_in_month(2025, 6) == 30

from pathlib import Path

import pytest

from rmforecast.config import SNAPSHOT_FILENAME, ForecastSettings

ENV_NAMES = (
    "SEAT_CAPACITY",
    "MAX_CAPACITY",
    "FORECAST_HORIZON_MONTHS",
    "SUGGESTION_THRESHOLD_PERCENT",
    "FALLBACK_COMPLETION_RATIO",
    "MIN_CURVE_DEPARTURES",
    "YOY_WINDOW_DAYS",
    "MAX_LEAD_DAYS",
    "DATA_DIR",
)


@pytest.fixture(autouse=True)
def clear_forecast_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = ForecastSettings.from_env()
    assert settings.seat_capacity == 50
    assert settings.maximum_capacity == 64
    assert settings.forecast_horizon_months == 3
    assert settings.suggestion_threshold_percent == 20.0
    assert settings.fallback_completion_ratio == 0.05
    assert settings.max_lead_days == 90
    assert settings.snapshot_path.name == SNAPSHOT_FILENAME


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("SEAT_CAPACITY", "70")
    monkeypatch.setenv("MAX_CAPACITY", "78")
    monkeypatch.setenv("SUGGESTION_THRESHOLD_PERCENT", "35.5")
    monkeypatch.setenv("DATA_DIR", str(tmp_path))

    settings = ForecastSettings.from_env()
    assert settings.seat_capacity == 70
    assert settings.maximum_capacity == 78
    assert settings.suggestion_threshold_percent == 35.5
    assert settings.snapshot_path == Path(tmp_path) / SNAPSHOT_FILENAME


def test_invalid_values_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("SEAT_CAPACITY", "lots")
    monkeypatch.setenv("MAX_CAPACITY", "-1")
    monkeypatch.setenv("FALLBACK_COMPLETION_RATIO", "   ")

    settings = ForecastSettings.from_env()
    assert settings.seat_capacity == 50
    assert settings.maximum_capacity == 64
    assert settings.fallback_completion_ratio == 0.05


def test_maximum_capacity_never_below_seat_capacity():
    assert ForecastSettings(seat_capacity=80, maximum_capacity=64).maximum_capacity == 80


def test_year_over_year_window_is_kept_small():
    assert ForecastSettings(yoy_window_days=10).yoy_window_days == 3
    assert ForecastSettings(yoy_window_days=0).yoy_window_days == 1


def test_with_overrides_ignores_unset_values():
    settings = ForecastSettings().with_overrides(seat_capacity=60, maximum_capacity=None)
    assert settings.seat_capacity == 60
    assert settings.maximum_capacity == 64

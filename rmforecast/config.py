"""Forecast engine settings, overridable through environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Optional, TypeVar

T = TypeVar("T", int, float)

BASE_DIR = Path(__file__).resolve().parents[1]
SNAPSHOT_FILENAME = "current_snapshot.csv"


def _env_number(name: str, default: T, cast: Callable[[str], T]) -> T:
    raw_value = os.environ.get(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        value = cast(raw_value.strip())
    except ValueError:
        return default
    # Zero and negative capacities or ratios make no sense; keep the default.
    if value <= 0:
        return default
    return value


@dataclass(frozen=True)
class ForecastSettings:
    seat_capacity: int = 50
    maximum_capacity: int = 64
    forecast_horizon_months: int = 3
    suggestion_threshold_percent: float = 20.0
    fallback_completion_ratio: float = 0.05
    min_curve_departures: int = 2
    yoy_window_days: int = 3
    max_lead_days: int = 90
    high_confidence_departures: int = 10
    medium_confidence_departures: int = 5
    suggestion_min_days: int = 10
    data_dir: Path = BASE_DIR / "data"

    def __post_init__(self) -> None:
        if self.maximum_capacity < self.seat_capacity:
            object.__setattr__(self, "maximum_capacity", self.seat_capacity)
        if not 0 < self.fallback_completion_ratio <= 1:
            object.__setattr__(self, "fallback_completion_ratio", 0.05)
        object.__setattr__(self, "yoy_window_days", max(1, min(3, int(self.yoy_window_days))))

    @property
    def snapshot_path(self) -> Path:
        return Path(self.data_dir) / SNAPSHOT_FILENAME

    def with_overrides(self, **overrides) -> "ForecastSettings":
        return replace(self, **{key: value for key, value in overrides.items() if value is not None})

    @classmethod
    def from_env(cls, data_dir: Optional[Path] = None) -> "ForecastSettings":
        defaults = cls()
        raw_dir = os.environ.get("DATA_DIR", "").strip()
        return cls(
            seat_capacity=_env_number("SEAT_CAPACITY", defaults.seat_capacity, int),
            maximum_capacity=_env_number("MAX_CAPACITY", defaults.maximum_capacity, int),
            forecast_horizon_months=_env_number(
                "FORECAST_HORIZON_MONTHS", defaults.forecast_horizon_months, int
            ),
            suggestion_threshold_percent=_env_number(
                "SUGGESTION_THRESHOLD_PERCENT", defaults.suggestion_threshold_percent, float
            ),
            fallback_completion_ratio=_env_number(
                "FALLBACK_COMPLETION_RATIO", defaults.fallback_completion_ratio, float
            ),
            min_curve_departures=_env_number(
                "MIN_CURVE_DEPARTURES", defaults.min_curve_departures, int
            ),
            yoy_window_days=_env_number("YOY_WINDOW_DAYS", defaults.yoy_window_days, int),
            max_lead_days=_env_number("MAX_LEAD_DAYS", defaults.max_lead_days, int),
            data_dir=Path(data_dir or raw_dir or defaults.data_dir),
        )

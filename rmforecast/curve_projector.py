"""Projection of an in-progress departure onto its historical booking curve."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from rmforecast.booking_index import BookingIndex
from rmforecast.config import ForecastSettings
from rmforecast.models import FlightKey


class ProjectionStrategy(Enum):
    CURVE_COMPLETION = "curve_completion"
    RATIO_FALLBACK = "ratio_fallback"
    YEAR_OVER_YEAR = "year_over_year"


@dataclass(frozen=True)
class Projection:
    strategy: ProjectionStrategy
    expected_passengers: int
    reference_passengers: float
    departures: int
    average_fare: float
    completion_ratio: Optional[float] = None
    expected_additional: float = 0.0


def round_half_up(value: float) -> int:
    if not math.isfinite(value) or value <= 0:
        return 0
    return int(math.floor(value + 0.5))


def select_strategy(departures: int, min_curve_departures: int = 2) -> ProjectionStrategy:
    if departures <= 0:
        return ProjectionStrategy.YEAR_OVER_YEAR
    if departures < max(1, int(min_curve_departures)):
        return ProjectionStrategy.RATIO_FALLBACK
    return ProjectionStrategy.CURVE_COMPLETION


class CurveProjector:
    """Expected final passengers for one departure, from a ``BookingIndex``.

    The strategy follows the amount of history behind the key: curve
    completion when enough past departures exist, a completion ratio when
    only a few do, and a prior-year same-weekday match when none do. Every
    result lies between the current booking count and the maximum capacity,
    except when the current count already exceeds that capacity.
    """

    def __init__(self, index: BookingIndex, settings: Optional[ForecastSettings] = None):
        self.index = index
        self.settings = settings or ForecastSettings()

    def _clamp(self, raw: int, current: int) -> int:
        return min(self.settings.maximum_capacity, max(current, raw))

    def project(
        self,
        key: FlightKey,
        days_to_departure: int,
        current_bookings: int,
        flight_date: Optional[date] = None,
        strategy: Optional[ProjectionStrategy] = None,
    ) -> Projection:
        key = FlightKey(*key)
        current = max(0, int(current_bookings))
        days = max(0, int(days_to_departure))
        if strategy is None:
            strategy = select_strategy(self.index.departures(key), self.settings.min_curve_departures)

        if strategy is ProjectionStrategy.CURVE_COMPLETION:
            return self._curve_completion(key, days, current)
        if strategy is ProjectionStrategy.RATIO_FALLBACK:
            return self._ratio_fallback(key, days, current)
        return self._year_over_year(key, current, flight_date)

    def _curve_completion(self, key: FlightKey, days: int, current: int) -> Projection:
        total = self.index.cumulative_by_day(key, 0)
        so_far = self.index.cumulative_by_day(key, days)
        additional = max(0.0, total - so_far) if total > 0 else 0.0
        return Projection(
            strategy=ProjectionStrategy.CURVE_COMPLETION,
            expected_passengers=self._clamp(current + round_half_up(additional), current),
            reference_passengers=total,
            departures=self.index.departures(key),
            average_fare=self.index.average_fare(key),
            expected_additional=additional,
        )

    def _ratio_fallback(self, key: FlightKey, days: int, current: int) -> Projection:
        total = self.index.cumulative_by_day(key, 0)
        so_far = self.index.cumulative_by_day(key, days)
        if total > 0 and so_far > 0:
            ratio = min(1.0, so_far / total)
        else:
            ratio = self.settings.fallback_completion_ratio
        raw = round_half_up(current / ratio)
        return Projection(
            strategy=ProjectionStrategy.RATIO_FALLBACK,
            expected_passengers=self._clamp(raw, current),
            reference_passengers=total,
            departures=self.index.departures(key),
            average_fare=self.index.average_fare(key),
            completion_ratio=ratio,
            expected_additional=max(0.0, raw - current),
        )

    def _year_over_year(self, key: FlightKey, current: int, flight_date: Optional[date]) -> Projection:
        if flight_date is None:
            bookings, fare = 0, 0.0
        else:
            match = self.index.prior_year_match(key.flight, flight_date, self.settings.yoy_window_days)
            bookings, fare = match.bookings, match.average_fare
        return Projection(
            strategy=ProjectionStrategy.YEAR_OVER_YEAR,
            expected_passengers=self._clamp(bookings, current),
            reference_passengers=float(bookings),
            departures=self.index.departures(key),
            average_fare=fare,
            expected_additional=max(0.0, bookings - current),
        )

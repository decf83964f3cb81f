"""Historical booking aggregates keyed by flight number and weekday.

The index is rebuilt from the full reservation snapshot on every request and
never mutated afterwards. For every ``FlightKey`` it keeps the number of
bookings observed at each lead time (clamped to ``max_lead_days``), the number
of distinct historical departures and the empirical booking curve: the average
number of bookings already on hand when exactly ``d`` days remain.
"""

from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from rmforecast.models import (
    FlightKey,
    ReservationRecord,
    UpcomingFlight,
    day_number,
    from_day_number,
    sunday_weekday,
)

logger = logging.getLogger(__name__)

FRAME_COLUMNS = ["flight", "weekday", "year", "flight_day", "booking_day", "days_before", "price"]


@dataclass(frozen=True)
class KeyAggregate:
    counts_by_days_before: Tuple[int, ...]
    departures: int
    bookings: int
    fare_total: float
    curve: Tuple[float, ...]

    @property
    def average_fare(self) -> float:
        if self.bookings <= 0:
            return 0.0
        return self.fare_total / self.bookings


@dataclass(frozen=True)
class YearOverYearMatch:
    bookings: int
    fare_total: float
    flight_dates: Tuple[date, ...]

    @property
    def average_fare(self) -> float:
        if self.bookings <= 0:
            return 0.0
        return self.fare_total / self.bookings


def _records_frame(records: Iterable[ReservationRecord]) -> pd.DataFrame:
    rows = [
        (r.flight, r.weekday, r.year, r.flight_day, r.booking_day, r.days_before, r.price)
        for r in records
    ]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def shift_year(value: date, years: int) -> date:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # 29 February has no counterpart in a common year.
        return value.replace(year=value.year + years, day=28)


def _freeze(mapping: Dict) -> Mapping:
    return MappingProxyType(dict(sorted(mapping.items())))


@dataclass(frozen=True)
class BookingIndex:
    max_lead_days: int
    as_of_day: Optional[int]
    record_count: int
    aggregates: Mapping[FlightKey, KeyAggregate]
    flight_bookings: Mapping[Tuple[str, int], int]
    flight_fares: Mapping[Tuple[str, int], float]
    departure_days: Mapping[str, Tuple[int, ...]]
    booking_days_by_year: Mapping[Tuple[FlightKey, int], Tuple[int, ...]]

    @classmethod
    def empty(cls, max_lead_days: int = 90, as_of: Optional[date] = None) -> "BookingIndex":
        return cls(
            max_lead_days=int(max_lead_days),
            as_of_day=day_number(as_of) if as_of is not None else None,
            record_count=0,
            aggregates=_freeze({}),
            flight_bookings=_freeze({}),
            flight_fares=_freeze({}),
            departure_days=_freeze({}),
            booking_days_by_year=_freeze({}),
        )

    @classmethod
    def build(
        cls,
        records: Sequence[ReservationRecord],
        *,
        as_of: Optional[date] = None,
        max_lead_days: int = 90,
    ) -> "BookingIndex":
        """Aggregate ``records`` into an immutable index.

        When ``as_of`` is given only departures strictly before that date feed
        the historical curves; every record still counts towards the exact
        flight totals and the per-year booking dates.
        """
        max_lead_days = max(0, int(max_lead_days))
        frame = _records_frame(records)
        if frame.empty:
            return cls.empty(max_lead_days=max_lead_days, as_of=as_of)

        as_of_day = day_number(as_of) if as_of is not None else None

        per_flight = frame.groupby(["flight", "flight_day"]).agg(
            bookings=("price", "size"), fare_total=("price", "sum")
        )
        flight_bookings = {
            (str(flight), int(day)): int(count)
            for (flight, day), count in per_flight["bookings"].items()
        }
        flight_fares = {
            (str(flight), int(day)): float(total)
            for (flight, day), total in per_flight["fare_total"].items()
        }

        departure_days: Dict[str, List[int]] = {}
        for flight, day in flight_bookings:
            departure_days.setdefault(flight, []).append(day)

        booking_days_by_year: Dict[Tuple[FlightKey, int], Tuple[int, ...]] = {}
        for (flight, weekday, year), days in frame.groupby(["flight", "weekday", "year"])["booking_day"]:
            key = FlightKey(str(flight), int(weekday))
            booking_days_by_year[(key, int(year))] = tuple(sorted(int(d) for d in days))

        history = frame if as_of_day is None else frame[frame["flight_day"] < as_of_day]
        aggregates = cls._build_aggregates(history, max_lead_days)

        index = cls(
            max_lead_days=max_lead_days,
            as_of_day=as_of_day,
            record_count=int(len(frame)),
            aggregates=_freeze(aggregates),
            flight_bookings=_freeze(flight_bookings),
            flight_fares=_freeze(flight_fares),
            departure_days=_freeze({flight: tuple(sorted(days)) for flight, days in departure_days.items()}),
            booking_days_by_year=_freeze(booking_days_by_year),
        )
        logger.debug(
            "booking index built",
            extra={"records": index.record_count, "flights": len(flight_bookings)},
        )
        return index

    @staticmethod
    def _build_aggregates(history: pd.DataFrame, max_lead_days: int) -> Dict[FlightKey, KeyAggregate]:
        if history.empty:
            return {}

        history = history.assign(lead=history["days_before"].clip(lower=0, upper=max_lead_days))
        leads = range(max_lead_days + 1)
        counts = (
            history.groupby(["flight", "weekday", "lead"])
            .size()
            .unstack("lead", fill_value=0)
            .reindex(columns=leads, fill_value=0)
        )
        per_key = history.groupby(["flight", "weekday"]).agg(
            departures=("flight_day", "nunique"),
            bookings=("price", "size"),
            fare_total=("price", "sum"),
        )

        aggregates: Dict[FlightKey, KeyAggregate] = {}
        for (flight, weekday), row_counts in zip(counts.index, counts.to_numpy(dtype=np.int64)):
            stats = per_key.loc[(flight, weekday)]
            departures = max(1, int(stats["departures"]))
            # Bookings on hand with d days left are those made d or more days out.
            on_hand = np.cumsum(row_counts[::-1])[::-1] / float(departures)
            aggregates[FlightKey(str(flight), int(weekday))] = KeyAggregate(
                counts_by_days_before=tuple(int(v) for v in row_counts),
                departures=departures,
                bookings=int(stats["bookings"]),
                fare_total=float(stats["fare_total"]),
                curve=tuple(float(v) for v in on_hand),
            )
        return aggregates

    @property
    def as_of(self) -> Optional[date]:
        if self.as_of_day is None:
            return None
        return from_day_number(self.as_of_day)

    def keys(self) -> List[FlightKey]:
        return list(self.aggregates.keys())

    def aggregate(self, key: FlightKey) -> Optional[KeyAggregate]:
        return self.aggregates.get(FlightKey(*key))

    def departures(self, key: FlightKey) -> int:
        agg = self.aggregate(key)
        return agg.departures if agg is not None else 0

    def curve(self, key: FlightKey) -> Tuple[float, ...]:
        agg = self.aggregate(key)
        return agg.curve if agg is not None else ()

    def cumulative_by_day(self, key: FlightKey, days: int) -> float:
        agg = self.aggregate(key)
        if agg is None:
            return 0.0
        position = max(0, min(self.max_lead_days, int(days)))
        return agg.curve[position]

    def average_fare(self, key: FlightKey) -> float:
        agg = self.aggregate(key)
        return agg.average_fare if agg is not None else 0.0

    def bookings_for(self, flight: str, flight_date: date) -> int:
        return self.flight_bookings.get((str(flight), day_number(flight_date)), 0)

    def average_fare_for(self, flight: str, flight_date: date) -> float:
        lookup = (str(flight), day_number(flight_date))
        count = self.flight_bookings.get(lookup, 0)
        if count <= 0:
            return 0.0
        return self.flight_fares.get(lookup, 0.0) / count

    def prior_year_match(self, flight: str, flight_date: date, window_days: int = 3) -> YearOverYearMatch:
        """Bookings of the same flight and weekday around the same date last year."""
        flight = str(flight)
        weekday = sunday_weekday(flight_date)
        target_year = flight_date.year - 1
        anchor = day_number(shift_year(flight_date, -1))
        days = self.departure_days.get(flight, ())
        lo = bisect_left(days, anchor - window_days)
        hi = bisect_right(days, anchor + window_days)

        bookings = 0
        fare_total = 0.0
        matched: List[date] = []
        for day in days[lo:hi]:
            candidate = from_day_number(day)
            if candidate.year != target_year or sunday_weekday(candidate) != weekday:
                continue
            bookings += self.flight_bookings.get((flight, day), 0)
            fare_total += self.flight_fares.get((flight, day), 0.0)
            matched.append(candidate)
        return YearOverYearMatch(bookings=bookings, fare_total=fare_total, flight_dates=tuple(matched))

    def years(self, key: FlightKey) -> List[int]:
        key = FlightKey(*key)
        return sorted(year for (candidate, year) in self.booking_days_by_year if candidate == key)

    def year_keys(self) -> List[FlightKey]:
        return sorted({key for key, _ in self.booking_days_by_year})

    def bookings_made_by(self, key: FlightKey, year: int, booking_day: Optional[int] = None) -> int:
        """Bookings for departures of ``year`` made on or before ``booking_day``."""
        days = self.booking_days_by_year.get((FlightKey(*key), int(year)), ())
        if booking_day is None:
            return len(days)
        return bisect_right(days, int(booking_day))

    def next_departure(self, key: FlightKey, today: date) -> Optional[date]:
        """First departure of ``key`` in ``today``'s year on or after ``today``."""
        key = FlightKey(*key)
        today_day = day_number(today)
        days = self.departure_days.get(key.flight, ())
        for day in days[bisect_left(days, today_day):]:
            candidate = from_day_number(day)
            if candidate.year != today.year:
                break
            if sunday_weekday(candidate) == key.weekday:
                return candidate
        return None

    def upcoming_flights(self, today: date, horizon_months: int = 3) -> List[UpcomingFlight]:
        horizon_end = (pd.Timestamp(today) + pd.DateOffset(months=int(horizon_months))).date()
        start_day = day_number(today)
        end_day = day_number(horizon_end)
        upcoming = []
        for flight, day in self.flight_bookings:
            if start_day <= day <= end_day:
                flight_date = from_day_number(day)
                if flight_date.year == today.year:
                    upcoming.append(UpcomingFlight(flight=flight, flight_date=flight_date))
        return upcoming

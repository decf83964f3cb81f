"""Reservation records and the output rows produced by the forecast engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, NamedTuple, Optional

EPOCH = date(1970, 1, 1)
WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def day_number(value: date) -> int:
    """Days since 1970-01-01; all date arithmetic runs on these integers."""
    return (value - EPOCH).days


def from_day_number(value: int) -> date:
    return EPOCH + timedelta(days=int(value))


def sunday_weekday(value: date) -> int:
    # date.weekday() is Monday=0; bookings are keyed Sunday=0..Saturday=6.
    return (value.weekday() + 1) % 7


class FlightKey(NamedTuple):
    flight: str
    weekday: int


@dataclass(frozen=True)
class ReservationRecord:
    flight: str
    flight_date: date
    booking_date: date
    fare_class: Optional[str] = None
    price: float = 0.0
    year: int = field(init=False)
    weekday: int = field(init=False)
    flight_day: int = field(init=False)
    booking_day: int = field(init=False)
    days_before: int = field(init=False)

    def __post_init__(self) -> None:
        if self.booking_date > self.flight_date:
            raise ValueError(
                f"Booking date {self.booking_date} is after flight date {self.flight_date}."
            )
        flight_day = day_number(self.flight_date)
        booking_day = day_number(self.booking_date)
        object.__setattr__(self, "flight", str(self.flight))
        object.__setattr__(self, "price", max(0.0, float(self.price or 0.0)))
        object.__setattr__(self, "year", self.flight_date.year)
        object.__setattr__(self, "weekday", sunday_weekday(self.flight_date))
        object.__setattr__(self, "flight_day", flight_day)
        object.__setattr__(self, "booking_day", booking_day)
        object.__setattr__(self, "days_before", flight_day - booking_day)

    @property
    def key(self) -> FlightKey:
        return FlightKey(self.flight, self.weekday)


@dataclass(frozen=True)
class UpcomingFlight:
    flight: str
    flight_date: date

    @property
    def key(self) -> FlightKey:
        return FlightKey(self.flight, sunday_weekday(self.flight_date))


@dataclass(frozen=True)
class ForecastRecord:
    flight: str
    flight_date: date
    weekday: int
    days_to_departure: int
    current_bookings: int
    expected_passengers: int
    expected_revenue: int
    load_factor: int
    upgrade_suggestion: bool
    upgrade_message: str
    note: str
    strategy: str
    confidence: str
    warning: bool

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["flight_date"] = self.flight_date.isoformat()
        payload["weekday_label"] = WEEKDAY_LABELS[self.weekday]
        return payload


@dataclass(frozen=True)
class SuggestionRecord:
    flight: str
    weekday: int
    bookings_this_year: int
    bookings_last_year: int
    days_to_departure: int
    ratio: float
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["ratio"] = round(self.ratio, 4)
        payload["weekday_label"] = WEEKDAY_LABELS[self.weekday]
        return payload

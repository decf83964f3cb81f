"""Fare-increase candidates: departures pacing ahead of last year's demand."""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from rmforecast.booking_index import BookingIndex, shift_year
from rmforecast.forecast_assembler import flight_sort_key
from rmforecast.models import SuggestionRecord, day_number

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD_PERCENT = 20.0
DEFAULT_MIN_DAYS = 10


def pace_ratio(bookings_this_year: int, bookings_last_year: int) -> Optional[float]:
    if bookings_last_year <= 0:
        return None
    return bookings_this_year / bookings_last_year


def should_suggest(
    bookings_this_year: int,
    bookings_last_year: int,
    days_to_departure: int,
    threshold_percent: float = DEFAULT_THRESHOLD_PERCENT,
    min_days: int = DEFAULT_MIN_DAYS,
) -> bool:
    ratio = pace_ratio(bookings_this_year, bookings_last_year)
    if ratio is None:
        return False
    return days_to_departure > min_days and ratio > 1 + threshold_percent / 100.0


def suggest(
    index: BookingIndex,
    threshold_percent: float = DEFAULT_THRESHOLD_PERCENT,
    today: Optional[date] = None,
    min_days: int = DEFAULT_MIN_DAYS,
) -> List[SuggestionRecord]:
    """Compare this year's bookings per flight and weekday with last year's.

    Both counts are taken at the same point of the booking season: bookings
    made on or before ``today`` this year against bookings made on or before
    the same calendar day last year. A suggestion needs more than ``min_days``
    until the key's next departure and a pace ratio above the threshold.
    """
    today = today or index.as_of
    if today is None:
        raise ValueError("A reference date is required to compute days to departure.")

    today_day = day_number(today)
    last_year_cutoff = day_number(shift_year(today, -1))
    suggestions: List[SuggestionRecord] = []

    for key in index.year_keys():
        years = index.years(key)
        if today.year not in years or today.year - 1 not in years:
            continue
        next_departure = index.next_departure(key, today)
        if next_departure is None:
            continue

        this_year = index.bookings_made_by(key, today.year, today_day)
        last_year = index.bookings_made_by(key, today.year - 1, last_year_cutoff)
        days_to_departure = day_number(next_departure) - today_day
        if not should_suggest(this_year, last_year, days_to_departure, threshold_percent, min_days):
            continue

        ratio = pace_ratio(this_year, last_year)
        suggestions.append(
            SuggestionRecord(
                flight=key.flight,
                weekday=key.weekday,
                bookings_this_year=this_year,
                bookings_last_year=last_year,
                days_to_departure=days_to_departure,
                ratio=ratio,
                recommendation=(
                    f"Bookings are {(ratio - 1) * 100:.0f}% ahead of last year with "
                    f"{days_to_departure} days to departure; consider raising fares."
                ),
            )
        )

    suggestions.sort(key=lambda s: (s.days_to_departure, flight_sort_key(s.flight), s.weekday))
    logger.info(
        "price suggestions computed",
        extra={"suggestions": len(suggestions), "as_of": today.isoformat()},
    )
    return suggestions

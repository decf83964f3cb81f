from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional, Tuple, Union

from rmforecast.booking_index import BookingIndex
from rmforecast.config import ForecastSettings
from rmforecast.curve_projector import CurveProjector, Projection, ProjectionStrategy, round_half_up
from rmforecast.models import ForecastRecord, UpcomingFlight, day_number, sunday_weekday

logger = logging.getLogger(__name__)


def flight_sort_key(flight: str) -> Tuple[int, Union[int, str]]:
    """Numbers sort numerically and ahead of free-form flight codes."""
    text = str(flight).strip()
    if text.isdigit():
        return (0, int(text))
    return (1, text)


def confidence_tier(departures: int, settings: ForecastSettings) -> str:
    if departures >= settings.high_confidence_departures:
        return "high"
    if departures >= settings.medium_confidence_departures:
        return "medium"
    return "low"


def load_factor(expected_passengers: int, seat_capacity: int) -> int:
    if seat_capacity <= 0:
        return 0
    return min(100, round_half_up(expected_passengers / seat_capacity * 100))


def _note(projection: Projection, current: int) -> str:
    if projection.strategy is ProjectionStrategy.CURVE_COMPLETION:
        return (
            f"Curve completion: {projection.expected_additional:.1f} more bookings expected on top of "
            f"{current} (historical average {projection.reference_passengers:.1f} "
            f"over {projection.departures} departures)"
        )
    if projection.strategy is ProjectionStrategy.RATIO_FALLBACK:
        return (
            f"Ratio fallback: {current} bookings taken as {projection.completion_ratio:.0%} "
            f"of the final load ({projection.departures} historical departures)"
        )
    if projection.reference_passengers > 0:
        return (
            f"Year-over-year: {projection.reference_passengers:.0f} pax on the matching "
            f"departure last year"
        )
    return "No comparable history; forecast held at current bookings"


class ForecastAssembler:
    def __init__(self, settings: Optional[ForecastSettings] = None):
        self.settings = settings or ForecastSettings()

    def forecast_flight(
        self,
        flight: UpcomingFlight,
        projector: CurveProjector,
        today: date,
        strategy: Optional[ProjectionStrategy] = None,
    ) -> ForecastRecord:
        settings = self.settings
        index = projector.index
        days_to_departure = day_number(flight.flight_date) - day_number(today)
        current = index.bookings_for(flight.flight, flight.flight_date)

        projection = projector.project(
            flight.key,
            days_to_departure,
            current,
            flight_date=flight.flight_date,
            strategy=strategy,
        )
        expected = projection.expected_passengers

        fare = projection.average_fare or index.average_fare_for(flight.flight, flight.flight_date)
        upgrade = expected > settings.seat_capacity
        reference = projection.reference_passengers
        if projection.strategy is ProjectionStrategy.YEAR_OVER_YEAR:
            confidence = "low"
        else:
            confidence = confidence_tier(projection.departures, settings)

        return ForecastRecord(
            flight=flight.flight,
            flight_date=flight.flight_date,
            weekday=sunday_weekday(flight.flight_date),
            days_to_departure=days_to_departure,
            current_bookings=current,
            expected_passengers=expected,
            expected_revenue=round_half_up(fare * expected),
            load_factor=load_factor(expected, settings.seat_capacity),
            upgrade_suggestion=upgrade,
            upgrade_message=(
                f"Consider opening up to {settings.maximum_capacity} seats" if upgrade else ""
            ),
            note=_note(projection, current),
            strategy=projection.strategy.value,
            confidence=confidence,
            warning=reference > 0 and expected < reference / 2,
        )

    def assemble(
        self,
        upcoming: Iterable[UpcomingFlight],
        index: BookingIndex,
        today: date,
        strategy: Optional[ProjectionStrategy] = None,
    ) -> List[ForecastRecord]:
        projector = CurveProjector(index, self.settings)
        unique = {(flight.flight, flight.flight_date): flight for flight in upcoming}
        results = [
            self.forecast_flight(flight, projector, today, strategy=strategy)
            for flight in unique.values()
            if flight.flight_date >= today
        ]
        results.sort(key=lambda record: (day_number(record.flight_date), flight_sort_key(record.flight)))
        logger.info(
            "forecast assembled",
            extra={"flights": len(results), "as_of": today.isoformat()},
        )
        return results


def assemble(
    upcoming: Iterable[UpcomingFlight],
    index: BookingIndex,
    today: date,
    settings: Optional[ForecastSettings] = None,
) -> List[ForecastRecord]:
    return ForecastAssembler(settings).assemble(upcoming, index, today)

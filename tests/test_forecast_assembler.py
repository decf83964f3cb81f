import json
from datetime import date

from rmforecast.booking_index import BookingIndex
from rmforecast.config import ForecastSettings
from rmforecast.curve_projector import CurveProjector
from rmforecast.forecast_assembler import ForecastAssembler, assemble, flight_sort_key, load_factor
from rmforecast.models import UpcomingFlight
from tests.helpers import (
    SUNDAY_LAST_YEAR,
    SUNDAY_UPCOMING,
    TODAY,
    departure,
    scenario_a_records,
    weekly_history,
)


def _forecast(records, today=TODAY, settings=None):
    index = BookingIndex.build(records, as_of=today)
    return assemble(index.upcoming_flights(today), index, today, settings)


def test_scenario_a_curve_completion_forecast():
    (record,) = _forecast(scenario_a_records())

    assert record.flight == "FL100"
    assert record.flight_date == SUNDAY_UPCOMING
    assert record.weekday == 0
    assert record.days_to_departure == 30
    assert record.current_bookings == 6
    assert record.expected_passengers == 21
    assert record.expected_revenue == 21 * 120
    assert record.load_factor == 42
    assert record.upgrade_suggestion is False
    assert record.upgrade_message == ""
    assert record.strategy == "curve_completion"
    assert record.confidence == "low"
    assert record.warning is False
    assert "15.0 more bookings" in record.note


def test_scenario_b_no_history_holds_current_bookings():
    (record,) = _forecast(departure("FL200", SUNDAY_UPCOMING, [35] * 4, price=80.0))

    assert record.strategy == "year_over_year"
    assert record.expected_passengers == 4
    # No historical fare, so the flight's own average fare prices the forecast.
    assert record.expected_revenue == 320
    assert record.confidence == "low"
    assert record.warning is False
    assert record.note.startswith("No comparable history")


def test_scenario_c_overbooked_flight_is_clamped_and_flagged():
    settings = ForecastSettings(seat_capacity=50, maximum_capacity=64)
    (record,) = _forecast(departure("FL400", SUNDAY_UPCOMING, [35] * 70), settings=settings)

    assert record.current_bookings == 70
    assert record.expected_passengers == 64
    assert record.upgrade_suggestion is True
    assert "64" in record.upgrade_message
    assert record.load_factor == 100


def test_warning_when_pace_is_far_behind_history(scenario_a_index):
    assembler = ForecastAssembler()
    projector = CurveProjector(scenario_a_index, assembler.settings)
    record = assembler.forecast_flight(
        UpcomingFlight("FL100", SUNDAY_UPCOMING), projector, today=date(2025, 5, 27)
    )

    assert record.days_to_departure == 5
    assert record.expected_passengers == 6
    assert record.warning is True


def test_confidence_follows_number_of_historical_departures():
    high = weekly_history("10", SUNDAY_LAST_YEAR, 10, [40, 40, 5])
    medium = weekly_history("20", SUNDAY_LAST_YEAR, 5, [40, 40, 5])
    current = departure("10", SUNDAY_UPCOMING, [35]) + departure("20", SUNDAY_UPCOMING, [35])

    by_flight = {record.flight: record for record in _forecast(high + medium + current)}
    assert by_flight["10"].confidence == "high"
    assert by_flight["20"].confidence == "medium"
    assert by_flight["10"].expected_passengers == 2


def test_output_sorted_by_date_then_numeric_flight():
    records = (
        departure("200", SUNDAY_UPCOMING, [35])
        + departure("FL1", SUNDAY_UPCOMING, [35])
        + departure("30", SUNDAY_UPCOMING, [35])
        + departure("5", date(2025, 5, 20), [10])
    )
    ordered = [(record.flight_date, record.flight) for record in _forecast(records)]
    assert ordered == [
        (date(2025, 5, 20), "5"),
        (SUNDAY_UPCOMING, "30"),
        (SUNDAY_UPCOMING, "200"),
        (SUNDAY_UPCOMING, "FL1"),
    ]


def test_forecast_bounds_hold_for_every_record():
    records = (
        scenario_a_records()
        + departure("FL400", SUNDAY_UPCOMING, [35] * 70)
        + departure("FL500", date(2025, 6, 4), [33] * 2)
        + weekly_history("FL500", date(2024, 6, 5), 1, [10] * 3)
    )
    forecasts = _forecast(records)
    assert len(forecasts) == 3
    for record in forecasts:
        assert 0 <= record.load_factor <= 100
        assert record.expected_passengers <= 64
        assert record.expected_passengers >= min(record.current_bookings, 64)
        assert record.expected_revenue >= 0


def test_assemble_is_deterministic():
    records = scenario_a_records() + departure("FL400", SUNDAY_UPCOMING, [35] * 12)
    first = _forecast(records)
    second = _forecast(records)

    assert first == second
    assert json.dumps([r.to_dict() for r in first]) == json.dumps([r.to_dict() for r in second])


def test_departed_and_duplicate_flights_are_skipped(scenario_a_index):
    upcoming = [
        UpcomingFlight("FL100", SUNDAY_UPCOMING),
        UpcomingFlight("FL100", SUNDAY_UPCOMING),
        UpcomingFlight("FL100", date(2025, 4, 27)),
    ]
    forecasts = ForecastAssembler().assemble(upcoming, scenario_a_index, TODAY)
    assert [record.flight_date for record in forecasts] == [SUNDAY_UPCOMING]


def test_load_factor_and_sort_key_helpers():
    assert load_factor(25, 50) == 50
    assert load_factor(64, 50) == 100
    assert load_factor(10, 0) == 0
    assert flight_sort_key("0042") < flight_sort_key("100") < flight_sort_key("AB1")

from datetime import date

import pytest

from rmforecast.booking_index import BookingIndex
from rmforecast.price_trend import pace_ratio, should_suggest, suggest
from tests.helpers import SUNDAY_LAST_YEAR, SUNDAY_UPCOMING, TODAY, departure


def _pacing_records():
    # Last year: 18 bookings made by early May, 10 more in the final week.
    last_year = departure("FL500", SUNDAY_LAST_YEAR, [40] * 18) + departure("FL500", SUNDAY_LAST_YEAR, [5] * 10)
    this_year = departure("FL500", SUNDAY_UPCOMING, [40] * 24)
    return last_year + this_year


def test_should_suggest_scenario_d():
    assert should_suggest(24, 18, 15, threshold_percent=20) is True
    assert should_suggest(24, 18, 5, threshold_percent=20) is False


def test_zero_prior_year_short_circuits():
    assert pace_ratio(12, 0) is None
    assert should_suggest(12, 0, 30) is False


def test_ratio_must_exceed_threshold_strictly():
    assert should_suggest(12, 10, 30, threshold_percent=20) is False
    assert should_suggest(13, 10, 30, threshold_percent=20) is True


def test_suggest_compares_bookings_at_the_same_point_of_the_season():
    index = BookingIndex.build(_pacing_records(), as_of=TODAY)

    (suggestion,) = suggest(index, 20)
    assert suggestion.flight == "FL500"
    assert suggestion.weekday == 0
    assert suggestion.bookings_this_year == 24
    assert suggestion.bookings_last_year == 18
    assert suggestion.days_to_departure == 30
    assert suggestion.ratio == pytest.approx(24 / 18)
    assert "33% ahead" in suggestion.recommendation


def test_no_suggestion_close_to_departure():
    today = date(2025, 5, 27)
    index = BookingIndex.build(_pacing_records(), as_of=today)
    assert suggest(index, 20) == []


def test_threshold_is_overridable_per_call():
    index = BookingIndex.build(_pacing_records(), as_of=TODAY)
    assert suggest(index, 50) == []
    assert len(suggest(index, 10)) == 1


def test_keys_without_prior_year_are_skipped():
    index = BookingIndex.build(departure("FL600", SUNDAY_UPCOMING, [40] * 30), as_of=TODAY)
    assert suggest(index, 20) == []


def test_reference_date_is_required():
    index = BookingIndex.build(_pacing_records())
    with pytest.raises(ValueError):
        suggest(index, 20)
    assert len(suggest(index, 20, today=TODAY)) == 1

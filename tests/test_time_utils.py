"""
Test time arithmetic helpers.
"""
import pytest
from datetime import date, datetime

from service.exceptions import InvalidTimeError, ScheduleValidationError
from service.time_utils import (
    date_range, format_duration, get_week_start, is_valid_time, minutes_to_time, time_to_minutes, weekday_index
)


def test_time_to_minutes():
    assert time_to_minutes("00:00") == 0
    assert time_to_minutes("09:30") == 570
    assert time_to_minutes("9:05") == 545
    assert time_to_minutes("23:59") == 1439


@pytest.mark.parametrize("value", ["24:00", "12:60", "abc", "", "9h30", None])
def test_time_to_minutes_rejects_malformed(value):
    with pytest.raises(InvalidTimeError):
        time_to_minutes(value)


def test_invalid_time_is_a_validation_error():
    """Callers catching ValueError also catch time errors."""
    assert issubclass(InvalidTimeError, ScheduleValidationError)
    assert issubclass(InvalidTimeError, ValueError)


def test_minutes_to_time_wraps_hours():
    assert minutes_to_time(570) == "09:30"
    assert minutes_to_time(0) == "00:00"
    assert minutes_to_time(24 * 60 + 30) == "00:30"


def test_two_digit_times_round_trip_exactly():
    for value in ["00:00", "07:05", "12:30", "23:59"]:
        assert minutes_to_time(time_to_minutes(value)) == value


def test_single_digit_hours_are_zero_padded():
    assert minutes_to_time(time_to_minutes("9:00")) == "09:00"


def test_is_valid_time():
    assert is_valid_time("18:00")
    assert not is_valid_time("18:0")
    assert not is_valid_time(1800)


def test_get_week_start_is_monday():
    # 2024-03-06 is a Wednesday, 2024-03-10 a Sunday
    assert get_week_start(date(2024, 3, 6)) == date(2024, 3, 4)
    assert get_week_start(date(2024, 3, 10)) == date(2024, 3, 4)
    assert get_week_start(date(2024, 3, 4)) == date(2024, 3, 4)
    assert get_week_start(datetime(2024, 3, 6, 22, 15)) == date(2024, 3, 4)


def test_weekday_index_sunday_first():
    assert weekday_index(date(2024, 3, 10)) == 0  # Sunday
    assert weekday_index(date(2024, 3, 4)) == 1   # Monday
    assert weekday_index(date(2024, 3, 9)) == 6   # Saturday


def test_date_range_inclusive():
    days = date_range(date(2024, 2, 27), date(2024, 3, 1))
    assert days == [date(2024, 2, 27), date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]
    assert date_range(date(2024, 3, 2), date(2024, 3, 1)) == []


def test_format_duration():
    assert format_duration(150) == "2h 30min"
    assert format_duration(120) == "2h"
    assert format_duration(45) == "45min"

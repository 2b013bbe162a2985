import pytest

from hospital_booking.services.availability import (
    free_slots,
    format_time_of_day,
    generate_time_slots,
    parse_time_of_day,
)

def test_full_working_day_has_sixteen_half_hour_slots():
    slots = generate_time_slots("09:00", "17:00")

    assert len(slots) == 16
    assert slots[0] == "09:00"
    assert slots[-1] == "16:30"
    assert slots == sorted(slots)

@pytest.mark.parametrize(
    ("available_from", "available_to"),
    [(None, "17:00"), ("09:00", None), ("", ""), (None, None)],
)
def test_missing_window_has_no_slots(available_from, available_to):
    assert generate_time_slots(available_from, available_to) == []

def test_start_minute_skips_earlier_grid_points_in_first_hour():
    assert generate_time_slots("09:15", "10:45") == ["09:30", "10:00", "10:30"]

def test_end_minute_keeps_grid_points_before_it_in_last_hour():
    assert generate_time_slots("16:00", "17:45") == ["16:00", "16:30", "17:00", "17:30"]

def test_window_end_is_exclusive():
    assert generate_time_slots("09:00", "09:30") == ["09:00"]
    assert generate_time_slots("08:00", "08:00") == []

def test_inverted_window_has_no_slots():
    assert generate_time_slots("17:00", "09:00") == []

def test_invalid_time_of_day_raises():
    with pytest.raises(ValueError):
        generate_time_slots("9am", "17:00")

def test_parse_and_format_time_of_day():
    assert parse_time_of_day("07:05") == (7, 5)
    assert format_time_of_day(7, 5) == "07:05"

@pytest.mark.parametrize("value", ["24:00", "12:60", "1:30", "12-30"])
def test_parse_time_of_day_rejects_malformed_values(value):
    with pytest.raises(ValueError):
        parse_time_of_day(value)

def test_free_slots_removes_booked_times_in_order():
    candidates = ["09:00", "09:30", "10:00", "10:30"]

    assert free_slots(candidates, {"09:30", "11:00"}) == ["09:00", "10:00", "10:30"]

from datetime import datetime

from utils.scheduling import (
    to_minutes, calculate_duration, time_periods_overlap, day_bounds, conflict_message,
)


def test_to_minutes():
    assert to_minutes("00:00") == 0
    assert to_minutes("7:30") == 450
    assert to_minutes("23:59") == 1439


def test_duration_rounds_to_half_hours():
    assert calculate_duration("09:00", "12:00") == 3
    assert calculate_duration("09:00", "10:40") == 1.5
    assert calculate_duration("09:00", "10:50") == 2


def test_duration_past_midnight():
    assert calculate_duration("22:00", "02:00") == 4
    assert calculate_duration("23:30", "00:30") == 1


def test_overlap_is_exclusive_at_the_edges():
    assert time_periods_overlap("09:00", "12:00", "11:00", "13:00")
    assert time_periods_overlap("09:00", "12:00", "10:00", "11:00")
    assert not time_periods_overlap("09:00", "12:00", "12:00", "14:00")
    assert not time_periods_overlap("13:00", "14:00", "09:00", "12:00")


def test_day_bounds():
    start, end = day_bounds(datetime(2025, 3, 9, 15, 45))
    assert start == datetime(2025, 3, 9)
    assert end == datetime(2025, 3, 10)


def test_conflict_message():
    message = conflict_message({
        "employee_name": "Blerta Morina",
        "object_name": "Krasniqi Office",
        "date": "09/03/2025",
        "time": "09:00 - 12:00",
    })
    assert message == "Blerta Morina is already scheduled at Krasniqi Office on 09/03/2025 from 09:00 - 12:00"

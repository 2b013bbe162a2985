"""
Slot generation for a doctor's daily working window.

Slots sit on a fixed grid inside each hour (every ``interval_minutes`` from
minute 0), not on a window sliding from the configured start minute.
"""

import re
from typing import Iterable, List, Optional, Tuple

SLOT_INTERVAL_MINUTES = 30

_TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

def parse_time_of_day(value: str) -> Tuple[int, int]:
    """Parse an ``HH:MM`` 24-hour string into ``(hour, minute)``."""
    match = _TIME_OF_DAY.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time of day: {value!r}")
    return int(match.group(1)), int(match.group(2))

def format_time_of_day(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"

def generate_time_slots(
    available_from: Optional[str],
    available_to: Optional[str],
    interval_minutes: int = SLOT_INTERVAL_MINUTES,
) -> List[str]:
    """Candidate slots in ``[available_from, available_to)``, ascending.

    Returns an empty list when either end of the window is missing.
    """
    if not available_from or not available_to:
        return []

    start_hour, start_minute = parse_time_of_day(available_from)
    end_hour, end_minute = parse_time_of_day(available_to)

    slots = []
    for hour in range(start_hour, end_hour + 1):
        for minute in range(0, 60, interval_minutes):
            if hour == start_hour and minute < start_minute:
                continue
            if hour == end_hour and minute >= end_minute:
                continue
            slots.append(format_time_of_day(hour, minute))

    return slots

def free_slots(candidates: Iterable[str], booked_times: Iterable[str]) -> List[str]:
    """Remove booked times from the candidate slots, keeping ascending order."""
    excluded = set(booked_times)
    return sorted(slot for slot in candidates if slot not in excluded)

"""Fixed school-day calendar: six teaching days, eight 45-minute periods."""
from __future__ import annotations

import re
from typing import NamedTuple

from schoolhub.core.exceptions import InvalidTimeSlotError

SCHOOL_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
SLOT_MINUTES = 45
FIRST_SLOT_START = "08:00"
PERIODS_PER_DAY = 8

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class TimeSlot(NamedTuple):
    period_number: int
    start_time: str
    end_time: str


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def _build_slots() -> tuple[TimeSlot, ...]:
    start = parse_time_to_minutes(FIRST_SLOT_START)
    slots = []
    for index in range(PERIODS_PER_DAY):
        slot_start = start + index * SLOT_MINUTES
        slots.append(TimeSlot(index + 1, format_minutes(slot_start), format_minutes(slot_start + SLOT_MINUTES)))
    return tuple(slots)


SLOTS = _build_slots()
_SLOTS_BY_START = {slot.start_time: slot for slot in SLOTS}


def is_school_day(day: str) -> bool:
    return day in SCHOOL_DAYS


def day_index(day: str) -> int:
    try:
        return SCHOOL_DAYS.index(day)
    except ValueError:
        return len(SCHOOL_DAYS)


def period_number_for(start_time: str) -> int:
    """Return the period number (1-8) whose window starts at ``start_time``.

    Unknown start times are rejected rather than mapped to period 1.
    """
    slot = _SLOTS_BY_START.get(start_time)
    if slot is None:
        raise InvalidTimeSlotError(
            f"Start time {start_time} is not one of the school periods",
            details={"start_time": start_time, "valid_start_times": [item.start_time for item in SLOTS]},
        )
    return slot.period_number


def slot_for_period(period_number: int) -> TimeSlot:
    if not 1 <= period_number <= PERIODS_PER_DAY:
        raise InvalidTimeSlotError(
            f"Period number must be between 1 and {PERIODS_PER_DAY}",
            details={"period_number": period_number},
        )
    return SLOTS[period_number - 1]


def validate_time_slot(start_time: str, end_time: str) -> int:
    period_number = period_number_for(start_time)
    expected_end = SLOTS[period_number - 1].end_time
    if end_time != expected_end:
        raise InvalidTimeSlotError(
            f"Period {period_number} runs {start_time}-{expected_end}, got end time {end_time}",
            details={"start_time": start_time, "end_time": end_time, "expected_end_time": expected_end},
        )
    return period_number

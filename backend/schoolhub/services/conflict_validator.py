"""Teacher day-load rules shared by the assignment service and the flush guard.

Works on anything exposing ``start_time`` and ``end_time`` as ``HH:MM`` strings.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from schoolhub.core.exceptions import (
    ConsecutivePeriodConflictError,
    DailyLimitExceededError,
    TeacherDoubleBookedError,
)
from schoolhub.services.slot_calendar import parse_time_to_minutes

DAILY_PERIOD_LIMIT = 4


class SlotLike(Protocol):
    start_time: str
    end_time: str


@dataclass(frozen=True)
class SlotWindow:
    start_time: str
    end_time: str


def slots_overlap(first: SlotLike, second: SlotLike) -> bool:
    return parse_time_to_minutes(first.start_time) < parse_time_to_minutes(second.end_time) and (
        parse_time_to_minutes(second.start_time) < parse_time_to_minutes(first.end_time)
    )


def check_teacher_day_load(
    candidate: SlotLike,
    existing: Sequence[SlotLike],
    *,
    limit: int = DAILY_PERIOD_LIMIT,
) -> None:
    """Raise if ``candidate`` cannot join a teacher's ``existing`` periods for one day.

    ``existing`` must already exclude the record being updated.
    """
    if len(existing) >= limit:
        raise DailyLimitExceededError(
            f"Teacher cannot be assigned more than {limit} classes per day",
            details={"limit": limit, "current": len(existing)},
        )

    for item in existing:
        if slots_overlap(candidate, item):
            raise TeacherDoubleBookedError(
                f"Teacher is already teaching during {item.start_time}-{item.end_time}",
                details={"start_time": item.start_time, "end_time": item.end_time},
            )

    ordered = sorted([*existing, candidate], key=lambda item: parse_time_to_minutes(item.start_time))
    for current, following in zip(ordered, ordered[1:]):
        if current.end_time == following.start_time:
            raise ConsecutivePeriodConflictError(
                "Teacher cannot be assigned consecutive classes",
                details={
                    "first": f"{current.start_time}-{current.end_time}",
                    "second": f"{following.start_time}-{following.end_time}",
                },
            )

import pytest

from schoolhub.core.exceptions import InvalidTimeSlotError
from schoolhub.services.slot_calendar import (
    PERIODS_PER_DAY,
    SCHOOL_DAYS,
    SLOTS,
    day_index,
    is_school_day,
    parse_time_to_minutes,
    period_number_for,
    slot_for_period,
    validate_time_slot,
)


def test_slots_cover_eight_back_to_back_periods():
    assert len(SLOTS) == PERIODS_PER_DAY
    assert SLOTS[0].start_time == "08:00"
    assert SLOTS[-1].end_time == "14:00"
    for current, following in zip(SLOTS, SLOTS[1:]):
        assert current.end_time == following.start_time
        assert parse_time_to_minutes(current.end_time) - parse_time_to_minutes(current.start_time) == 45


def test_period_number_for_canonical_start_is_stable():
    assert period_number_for("09:30") == 3
    assert period_number_for("09:30") == 3
    assert period_number_for("08:00") == 1
    assert period_number_for("13:15") == 8


@pytest.mark.parametrize("start_time", ["07:00", "08:10", "14:00"])
def test_unknown_start_time_is_rejected(start_time):
    with pytest.raises(InvalidTimeSlotError):
        period_number_for(start_time)


def test_validate_time_slot_requires_canonical_end():
    assert validate_time_slot("10:15", "11:00") == 4
    with pytest.raises(InvalidTimeSlotError) as exc_info:
        validate_time_slot("10:15", "11:15")
    assert exc_info.value.details["expected_end_time"] == "11:00"


def test_slot_for_period_bounds():
    assert slot_for_period(2).start_time == "08:45"
    with pytest.raises(InvalidTimeSlotError):
        slot_for_period(0)
    with pytest.raises(InvalidTimeSlotError):
        slot_for_period(9)


def test_school_days_and_ordering():
    assert SCHOOL_DAYS[0] == "Monday"
    assert is_school_day("Saturday")
    assert not is_school_day("Sunday")
    assert sorted(["Friday", "Monday", "Wednesday"], key=day_index) == ["Monday", "Wednesday", "Friday"]


def test_parse_time_rejects_bad_format():
    with pytest.raises(ValueError):
        parse_time_to_minutes("8:00")

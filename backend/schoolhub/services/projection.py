"""Per class-section-year timetable view kept in step with the assignment store.

Period rows are patched on each assignment write; per-teacher daily counts are
never stored and are always read back from the assignment store.
"""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from schoolhub.core.exceptions import ResourceNotFoundError
from schoolhub.models.staff_assignment import StaffAssignment
from schoolhub.models.timetable import ClassTimetable, TimetablePeriod
from schoolhub.models.user import User, UserRole
from schoolhub.services import assignment_store
from schoolhub.services.slot_calendar import SCHOOL_DAYS, SLOTS, day_index, validate_time_slot

logger = logging.getLogger(__name__)


def get(db: Session, class_number: int, section: str, academic_year: str) -> ClassTimetable | None:
    statement = select(ClassTimetable).where(
        ClassTimetable.class_number == class_number,
        ClassTimetable.section == section,
        ClassTimetable.academic_year == academic_year,
    )
    return db.execute(statement).scalar_one_or_none()


def get_or_404(db: Session, class_number: int, section: str, academic_year: str) -> ClassTimetable:
    timetable = get(db, class_number, section, academic_year)
    if timetable is None:
        raise ResourceNotFoundError("Timetable", f"{class_number}-{section}/{academic_year}")
    return timetable


def get_or_create(db: Session, class_number: int, section: str, academic_year: str) -> ClassTimetable:
    timetable = get(db, class_number, section, academic_year)
    if timetable is None:
        timetable = ClassTimetable(class_number=class_number, section=section, academic_year=academic_year)
        db.add(timetable)
    return timetable


def get_period(db: Session, period_id: str) -> TimetablePeriod:
    period = db.get(TimetablePeriod, period_id)
    if period is None:
        raise ResourceNotFoundError("Period", period_id)
    return period


def _put_period(
    timetable: ClassTimetable,
    *,
    day: str,
    period_number: int,
    subject: str,
    teacher_id: str,
    start_time: str,
    end_time: str,
) -> TimetablePeriod:
    period = timetable.period_at(day, period_number)
    if period is None:
        period = TimetablePeriod(day=day, period_number=period_number)
        timetable.periods.append(period)
    period.subject = subject
    period.teacher_id = teacher_id
    period.start_time = start_time
    period.end_time = end_time
    return period


def apply_assignment(db: Session, assignment: StaffAssignment) -> ClassTimetable:
    """Mirror one assignment into its class timetable, replacing whatever held that period."""
    timetable = get_or_create(db, assignment.class_number, assignment.section, assignment.academic_year)
    _put_period(
        timetable,
        day=assignment.day,
        period_number=validate_time_slot(assignment.start_time, assignment.end_time),
        subject=assignment.subject,
        teacher_id=assignment.teacher_id,
        start_time=assignment.start_time,
        end_time=assignment.end_time,
    )
    return timetable


def withdraw_assignment(db: Session, assignment: StaffAssignment) -> bool:
    timetable = get(db, assignment.class_number, assignment.section, assignment.academic_year)
    if timetable is None:
        return False
    period = timetable.period_at(assignment.day, assignment.period_number)
    if period is None or period.teacher_id != assignment.teacher_id or period.subject != assignment.subject:
        return False
    timetable.periods.remove(period)
    return True


def rebuild(db: Session, class_number: int, section: str, academic_year: str) -> ClassTimetable:
    """Recompute the class timetable's periods from the assignment store alone."""
    timetable = get_or_create(db, class_number, section, academic_year)
    timetable.periods.clear()
    db.flush()
    for assignment in assignment_store.find_by_class(db, class_number, section, academic_year):
        _put_period(
            timetable,
            day=assignment.day,
            period_number=assignment.period_number,
            subject=assignment.subject,
            teacher_id=assignment.teacher_id,
            start_time=assignment.start_time,
            end_time=assignment.end_time,
        )
    logger.info(
        "Rebuilt timetable %s-%s/%s with %d periods",
        class_number,
        section,
        academic_year,
        len(timetable.periods),
    )
    return timetable


def teacher_class_count(db: Session, teacher_id: str, day: str, academic_year: str) -> int:
    counts = assignment_store.daily_class_counts(db, academic_year, {teacher_id})
    return counts.get((teacher_id, day), 0)


def can_assign_teacher(db: Session, timetable: ClassTimetable, teacher_id: str, day: str, period_number: int) -> bool:
    class_count = teacher_class_count(db, teacher_id, day, timetable.academic_year)
    return timetable.can_assign_teacher(teacher_id, day, period_number, class_count)


def is_teacher_assigned(timetable: ClassTimetable, teacher_id: str, day: str) -> bool:
    return timetable.is_teacher_assigned(teacher_id, day)


def teacher_timetables(db: Session, teacher_id: str, academic_year: str) -> list[ClassTimetable]:
    statement = (
        select(ClassTimetable)
        .join(TimetablePeriod, TimetablePeriod.timetable_id == ClassTimetable.id)
        .where(TimetablePeriod.teacher_id == teacher_id, ClassTimetable.academic_year == academic_year)
        .distinct()
    )
    rows = db.execute(statement).scalars()
    return sorted(rows, key=lambda item: (item.class_number, item.section))


def can_mark_attendance(user: User, timetable: ClassTimetable) -> bool:
    if user.role == UserRole.admin:
        return True
    return user.role == UserRole.staff and timetable.first_period_teacher_id == user.id


def daily_counts_for(db: Session, timetable: ClassTimetable) -> dict[tuple[str, str], int]:
    teacher_ids = {item.teacher_id for item in timetable.periods}
    return assignment_store.daily_class_counts(db, timetable.academic_year, teacher_ids)


def calendar_view(db: Session, academic_year: str) -> dict:
    """Whole-school grid for a year, built directly from stored assignments."""
    classes: dict[tuple[int, str], dict] = {}
    for assignment in assignment_store.list_for_year(db, academic_year):
        key = (assignment.class_number, assignment.section)
        entry = classes.setdefault(
            key,
            {"classNumber": assignment.class_number, "section": assignment.section, "schedule": {}},
        )
        day_entry = entry["schedule"].setdefault(assignment.day, {})
        day_entry[f"{assignment.start_time}-{assignment.end_time}"] = {
            "subject": assignment.subject,
            "teacherId": assignment.teacher_id,
            "teacherName": assignment.teacher_name,
        }
    return {
        "academicYear": academic_year,
        "days": list(SCHOOL_DAYS),
        "timeSlots": [
            {"periodNumber": slot.period_number, "startTime": slot.start_time, "endTime": slot.end_time}
            for slot in SLOTS
        ],
        "classes": [classes[key] for key in sorted(classes)],
    }


def ordered_days(timetable: ClassTimetable) -> list[str]:
    return sorted({item.day for item in timetable.periods}, key=day_index)

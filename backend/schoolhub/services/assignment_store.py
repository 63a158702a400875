"""Queries and writes against the ``staff_assignments`` table.

The store only relies on the database for slot uniqueness; the daily load rules
are checked by the caller and again by the flush guard on the model.
"""
from __future__ import annotations

from sqlalchemy import and_, func, not_, select
from sqlalchemy.orm import Session

from schoolhub.core.exceptions import ResourceNotFoundError
from schoolhub.models.staff_assignment import StaffAssignment
from schoolhub.services.slot_calendar import day_index, parse_time_to_minutes


def _by_day_and_time(item: StaffAssignment) -> tuple[int, int]:
    return day_index(item.day), parse_time_to_minutes(item.start_time)


def get(db: Session, assignment_id: str) -> StaffAssignment | None:
    return db.get(StaffAssignment, assignment_id)


def find_by_slot(db: Session, class_number: int, section: str, day: str, academic_year: str) -> list[StaffAssignment]:
    statement = select(StaffAssignment).where(
        StaffAssignment.class_number == class_number,
        StaffAssignment.section == section,
        StaffAssignment.day == day,
        StaffAssignment.academic_year == academic_year,
    )
    return sorted(db.execute(statement).scalars(), key=_by_day_and_time)


def find_by_class(db: Session, class_number: int, section: str, academic_year: str) -> list[StaffAssignment]:
    statement = select(StaffAssignment).where(
        StaffAssignment.class_number == class_number,
        StaffAssignment.section == section,
        StaffAssignment.academic_year == academic_year,
    )
    return sorted(db.execute(statement).scalars(), key=_by_day_and_time)


def find_by_teacher(db: Session, teacher_id: str, academic_year: str) -> list[StaffAssignment]:
    statement = select(StaffAssignment).where(
        StaffAssignment.teacher_id == teacher_id,
        StaffAssignment.academic_year == academic_year,
    )
    return sorted(db.execute(statement).scalars(), key=_by_day_and_time)


def find_by_teacher_and_day(
    db: Session,
    teacher_id: str,
    day: str,
    academic_year: str,
    *,
    exclude_id: str | None = None,
    lock: bool = False,
) -> list[StaffAssignment]:
    statement = select(StaffAssignment).where(
        StaffAssignment.teacher_id == teacher_id,
        StaffAssignment.day == day,
        StaffAssignment.academic_year == academic_year,
    )
    if exclude_id is not None:
        statement = statement.where(StaffAssignment.id != exclude_id)
    if lock:
        statement = statement.with_for_update()
    return sorted(db.execute(statement).scalars(), key=_by_day_and_time)


def find_slot_record(
    db: Session,
    *,
    class_number: int,
    section: str,
    day: str,
    start_time: str,
    end_time: str,
    academic_year: str,
) -> StaffAssignment | None:
    statement = select(StaffAssignment).where(
        StaffAssignment.class_number == class_number,
        StaffAssignment.section == section,
        StaffAssignment.day == day,
        StaffAssignment.start_time == start_time,
        StaffAssignment.end_time == end_time,
        StaffAssignment.academic_year == academic_year,
    )
    return db.execute(statement.limit(1)).scalars().first()


def find_teacher_subject_elsewhere(
    db: Session,
    *,
    teacher_id: str,
    subject: str,
    academic_year: str,
    class_number: int,
    section: str,
    exclude_id: str | None = None,
) -> StaffAssignment | None:
    statement = select(StaffAssignment).where(
        StaffAssignment.teacher_id == teacher_id,
        func.lower(StaffAssignment.subject) == subject.lower(),
        StaffAssignment.academic_year == academic_year,
        not_(and_(StaffAssignment.class_number == class_number, StaffAssignment.section == section)),
    )
    if exclude_id is not None:
        statement = statement.where(StaffAssignment.id != exclude_id)
    return db.execute(statement.limit(1)).scalars().first()


def list_for_year(db: Session, academic_year: str) -> list[StaffAssignment]:
    statement = select(StaffAssignment).where(StaffAssignment.academic_year == academic_year)
    rows = db.execute(statement).scalars()
    return sorted(rows, key=lambda item: (item.class_number, item.section, *_by_day_and_time(item)))


def daily_class_counts(
    db: Session,
    academic_year: str,
    teacher_ids: set[str] | None = None,
) -> dict[tuple[str, str], int]:
    """Current number of assignments per (teacher, day), computed from stored rows."""
    statement = (
        select(StaffAssignment.teacher_id, StaffAssignment.day, func.count(StaffAssignment.id))
        .where(StaffAssignment.academic_year == academic_year)
        .group_by(StaffAssignment.teacher_id, StaffAssignment.day)
    )
    if teacher_ids is not None:
        if not teacher_ids:
            return {}
        statement = statement.where(StaffAssignment.teacher_id.in_(teacher_ids))
    return {(teacher_id, day): count for teacher_id, day, count in db.execute(statement)}


def upsert(
    db: Session,
    *,
    class_number: int,
    section: str,
    day: str,
    start_time: str,
    end_time: str,
    academic_year: str,
    subject: str,
    teacher_id: str,
    existing: StaffAssignment | None = None,
) -> tuple[StaffAssignment, bool]:
    """Overwrite the record holding this class slot, or stage a new one.

    Returns ``(assignment, created)``. Nothing is flushed here.
    """
    if existing is None:
        existing = find_slot_record(
            db,
            class_number=class_number,
            section=section,
            day=day,
            start_time=start_time,
            end_time=end_time,
            academic_year=academic_year,
        )
    if existing is not None:
        existing.teacher_id = teacher_id
        existing.subject = subject
        return existing, False

    assignment = StaffAssignment(
        class_number=class_number,
        section=section,
        day=day,
        start_time=start_time,
        end_time=end_time,
        academic_year=academic_year,
        subject=subject,
        teacher_id=teacher_id,
    )
    db.add(assignment)
    return assignment, True


def delete(db: Session, assignment_id: str) -> bool:
    assignment = db.get(StaffAssignment, assignment_id)
    if assignment is None:
        raise ResourceNotFoundError("Assignment", assignment_id)
    db.delete(assignment)
    return True

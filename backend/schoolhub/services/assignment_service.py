"""Conflict-checked writes for staff assignments.

Every write that places a teacher in a class period goes through here, whether it
arrives as a single assignment or as a timetable edit. Each one validates the
teacher and class, checks the teacher's load for the day against the assignment
store under the (teacher, day, academic year) lock, writes the store and mirrors
it into the class timetable in one transaction.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from schoolhub.core.exceptions import (
    AppError,
    ConsecutivePeriodConflictError,
    DailyLimitExceededError,
    DuplicateSlotError,
    InvalidTimeSlotError,
    ResourceNotFoundError,
    SchedulingConflictError,
    TeacherCrossClassConflictError,
    TeacherNotFoundError,
)
from schoolhub.models.staff_assignment import SLOT_CONSTRAINT, StaffAssignment
from schoolhub.models.timetable import ClassTimetable, TimetablePeriod
from schoolhub.models.user import User
from schoolhub.services import assignment_store, projection
from schoolhub.services.audit import log_activity
from schoolhub.services.class_ids import format_class_id, parse_class_id
from schoolhub.services.conflict_validator import DAILY_PERIOD_LIMIT, SlotWindow, check_teacher_day_load
from schoolhub.services.directory import get_staff_member
from schoolhub.services.locks import teacher_day_lock, teacher_day_locks
from schoolhub.services.slot_calendar import validate_time_slot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignmentRequest:
    class_id: str
    subject: str
    teacher_id: str
    academic_year: str
    day: str
    start_time: str
    end_time: str


def is_slot_conflict(exc: IntegrityError) -> bool:
    """True only for a violation of the one-record-per-class-slot constraint."""
    orig = exc.orig
    constraint_name = getattr(getattr(orig, "diag", None), "constraint_name", None)
    if constraint_name:
        return constraint_name == SLOT_CONSTRAINT
    message = str(orig)
    return SLOT_CONSTRAINT in message or "UNIQUE constraint failed: staff_assignments." in message


def _commit(db: Session, context: dict) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not is_slot_conflict(exc):
            raise
        raise DuplicateSlotError(
            "This subject is already assigned to another teacher in this class slot",
            details=context,
        ) from exc


def _log_rejection(exc: AppError, teacher_id: str, day: str, academic_year: str) -> None:
    if isinstance(exc, SchedulingConflictError):
        logger.info(
            "Rejected assignment for teacher=%s day=%s year=%s: %s",
            teacher_id,
            day,
            academic_year,
            exc.code,
        )


def _require_staff(db: Session, teacher_id: str) -> User:
    teacher = get_staff_member(db, teacher_id)
    if teacher is None:
        raise TeacherNotFoundError(teacher_id)
    return teacher


def _admit(
    db: Session,
    *,
    teacher: User,
    class_number: int,
    section: str,
    subject: str,
    academic_year: str,
    day: str,
    start_time: str,
    end_time: str,
    existing: StaffAssignment | None = None,
) -> tuple[StaffAssignment, bool]:
    """Check and stage one slot record. The caller holds the teacher's day lock."""
    if existing is None:
        existing = assignment_store.find_slot_record(
            db,
            class_number=class_number,
            section=section,
            day=day,
            start_time=start_time,
            end_time=end_time,
            academic_year=academic_year,
        )
    exclude_id = existing.id if existing is not None else None

    elsewhere = assignment_store.find_teacher_subject_elsewhere(
        db,
        teacher_id=teacher.id,
        subject=subject,
        academic_year=academic_year,
        class_number=class_number,
        section=section,
        exclude_id=exclude_id,
    )
    if elsewhere is not None:
        raise TeacherCrossClassConflictError(
            f"Teacher is already assigned to {subject} in Class "
            f"{format_class_id(elsewhere.class_number, elsewhere.section)}",
            details={"assignment_id": elsewhere.id, "teacher_id": teacher.id},
        )

    same_day = assignment_store.find_by_teacher_and_day(
        db,
        teacher.id,
        day,
        academic_year,
        exclude_id=exclude_id,
        lock=True,
    )
    check_teacher_day_load(SlotWindow(start_time, end_time), same_day)

    if existing is not None:
        existing.teacher_id = teacher.id
        existing.subject = subject
        existing.start_time = start_time
        existing.end_time = end_time
        assignment, created = existing, False
    else:
        assignment, created = assignment_store.upsert(
            db,
            class_number=class_number,
            section=section,
            day=day,
            start_time=start_time,
            end_time=end_time,
            academic_year=academic_year,
            subject=subject,
            teacher_id=teacher.id,
        )
    db.flush()
    return assignment, created


def submit(db: Session, request: AssignmentRequest, actor: User | None = None) -> StaffAssignment:
    teacher = _require_staff(db, request.teacher_id)
    class_number, section = parse_class_id(request.class_id)
    validate_time_slot(request.start_time, request.end_time)

    with teacher_day_lock(teacher.id, request.day, request.academic_year):
        try:
            assignment, created = _admit(
                db,
                teacher=teacher,
                class_number=class_number,
                section=section,
                subject=request.subject,
                academic_year=request.academic_year,
                day=request.day,
                start_time=request.start_time,
                end_time=request.end_time,
            )
            projection.apply_assignment(db, assignment)
            log_activity(
                db,
                actor=actor,
                action="staff_assignment.created" if created else "staff_assignment.updated",
                entity_type="staff_assignment",
                entity_id=assignment.id,
                details={
                    "class_id": format_class_id(class_number, section),
                    "subject": request.subject,
                    "teacher_id": teacher.id,
                    "day": request.day,
                    "slot": f"{request.start_time}-{request.end_time}",
                    "academic_year": request.academic_year,
                },
            )
            _commit(
                db,
                {"class_id": request.class_id, "day": request.day, "start_time": request.start_time},
            )
        except AppError as exc:
            db.rollback()
            _log_rejection(exc, request.teacher_id, request.day, request.academic_year)
            raise

    db.refresh(assignment)
    logger.info(
        "%s assignment %s: class=%s subject=%s teacher=%s %s %s-%s year=%s",
        "Created" if created else "Updated",
        assignment.id,
        format_class_id(class_number, section),
        assignment.subject,
        assignment.teacher_id,
        assignment.day,
        assignment.start_time,
        assignment.end_time,
        assignment.academic_year,
    )
    return assignment


def remove(db: Session, assignment_id: str, actor: User | None = None) -> bool:
    assignment = assignment_store.get(db, assignment_id)
    if assignment is None:
        raise ResourceNotFoundError("Assignment", assignment_id)

    withdrawn = projection.withdraw_assignment(db, assignment)
    log_activity(
        db,
        actor=actor,
        action="staff_assignment.deleted",
        entity_type="staff_assignment",
        entity_id=assignment_id,
        details={
            "class_id": format_class_id(assignment.class_number, assignment.section),
            "subject": assignment.subject,
            "teacher_id": assignment.teacher_id,
            "day": assignment.day,
            "academic_year": assignment.academic_year,
            "timetable_period_removed": withdrawn,
        },
    )
    assignment_store.delete(db, assignment_id)
    db.commit()
    logger.info("Deleted assignment %s (timetable period removed: %s)", assignment_id, withdrawn)
    return True


def _check_day_payload(day: str, periods: list[dict]) -> list[dict]:
    """Shape checks on a posted day; load checks against other classes happen in ``_admit``."""
    seen: set[int] = set()
    by_teacher: dict[str, list[int]] = defaultdict(list)
    resolved = []
    for item in periods:
        period_number = validate_time_slot(item["start_time"], item["end_time"])
        if item.get("period_number") not in (None, period_number):
            raise InvalidTimeSlotError(
                f"Period {item['period_number']} does not start at {item['start_time']}",
                details={"period_number": item["period_number"], "start_time": item["start_time"]},
            )
        if period_number in seen:
            raise InvalidTimeSlotError(
                f"Period {period_number} appears more than once on {day}",
                details={"day": day, "period_number": period_number},
            )
        seen.add(period_number)
        by_teacher[item["teacher_id"]].append(period_number)
        resolved.append({**item, "period_number": period_number})

    for teacher_id, numbers in by_teacher.items():
        if len(numbers) > DAILY_PERIOD_LIMIT:
            raise DailyLimitExceededError(
                f"Teacher cannot be assigned more than {DAILY_PERIOD_LIMIT} classes per day",
                details={"teacher_id": teacher_id, "day": day, "limit": DAILY_PERIOD_LIMIT},
            )
        ordered = sorted(numbers)
        for current, following in zip(ordered, ordered[1:]):
            if following - current == 1:
                raise ConsecutivePeriodConflictError(
                    "Teacher cannot be assigned consecutive classes",
                    details={"teacher_id": teacher_id, "day": day, "periods": [current, following]},
                )
    return sorted(resolved, key=lambda item: item["period_number"])


def replace_day(
    db: Session,
    *,
    class_number: int,
    section: str,
    academic_year: str,
    day: str,
    periods: list[dict],
    first_period_teacher_id: str | None = None,
    actor: User | None = None,
) -> ClassTimetable:
    """Swap one class day wholesale, in the store and in the timetable.

    ``periods`` items use snake_case keys. The class's previous assignments for the
    day are dropped first, so each teacher is checked against their other classes.
    """
    teachers = {item["teacher_id"]: _require_staff(db, item["teacher_id"]) for item in periods}
    if first_period_teacher_id is not None:
        _require_staff(db, first_period_teacher_id)
    resolved = _check_day_payload(day, periods)
    class_id = format_class_id(class_number, section)

    with teacher_day_locks((teacher_id, day, academic_year) for teacher_id in teachers):
        try:
            for assignment in assignment_store.find_by_slot(db, class_number, section, day, academic_year):
                db.delete(assignment)
            timetable = projection.get_or_create(db, class_number, section, academic_year)
            for period in timetable.periods_for(day):
                timetable.periods.remove(period)
            db.flush()

            for item in resolved:
                assignment, _ = _admit(
                    db,
                    teacher=teachers[item["teacher_id"]],
                    class_number=class_number,
                    section=section,
                    subject=item["subject"],
                    academic_year=academic_year,
                    day=day,
                    start_time=item["start_time"],
                    end_time=item["end_time"],
                )
                projection.apply_assignment(db, assignment)
            if first_period_teacher_id is not None:
                timetable.first_period_teacher_id = first_period_teacher_id
            db.flush()

            log_activity(
                db,
                actor=actor,
                action="timetable.day_saved",
                entity_type="class_timetable",
                entity_id=timetable.id,
                details={
                    "class_id": class_id,
                    "day": day,
                    "academic_year": academic_year,
                    "periods": len(resolved),
                },
            )
            _commit(db, {"class_id": class_id, "day": day})
        except AppError as exc:
            db.rollback()
            _log_rejection(exc, ",".join(sorted(teachers)), day, academic_year)
            raise

    db.refresh(timetable)
    logger.info("Saved %s for class %s/%s (%d periods)", day, class_id, academic_year, len(resolved))
    return timetable


def _slot_record_for(db: Session, period: TimetablePeriod) -> StaffAssignment | None:
    timetable = period.timetable
    return assignment_store.find_slot_record(
        db,
        class_number=timetable.class_number,
        section=timetable.section,
        day=period.day,
        start_time=period.start_time,
        end_time=period.end_time,
        academic_year=timetable.academic_year,
    )


def update_period(
    db: Session,
    period: TimetablePeriod,
    *,
    subject: str,
    teacher_id: str,
    start_time: str,
    end_time: str,
    actor: User | None = None,
) -> TimetablePeriod:
    """Edit one timetable period together with the assignment it mirrors."""
    teacher = _require_staff(db, teacher_id)
    period_number = validate_time_slot(start_time, end_time)
    timetable = period.timetable
    day = period.day
    academic_year = timetable.academic_year

    if period_number != period.period_number and timetable.period_at(day, period_number) is not None:
        raise InvalidTimeSlotError(
            f"Period {period_number} on {day} is already filled",
            details={"day": day, "period_number": period_number},
        )

    previous_teacher_id = period.teacher_id
    with teacher_day_lock(teacher.id, day, academic_year):
        try:
            record = _slot_record_for(db, period)
            assignment, _ = _admit(
                db,
                teacher=teacher,
                class_number=timetable.class_number,
                section=timetable.section,
                subject=subject,
                academic_year=academic_year,
                day=day,
                start_time=start_time,
                end_time=end_time,
                existing=record,
            )
            period.subject = assignment.subject
            period.teacher_id = assignment.teacher_id
            period.period_number = period_number
            period.start_time = assignment.start_time
            period.end_time = assignment.end_time

            log_activity(
                db,
                actor=actor,
                action="timetable.period_updated",
                entity_type="timetable_period",
                entity_id=period.id,
                details={
                    "assignment_id": assignment.id,
                    "previous_teacher_id": previous_teacher_id,
                    "teacher_id": teacher.id,
                },
            )
            _commit(db, {"period_id": period.id, "day": day, "start_time": start_time})
        except AppError as exc:
            db.rollback()
            _log_rejection(exc, teacher.id, day, academic_year)
            raise

    db.refresh(period)
    return period


def remove_period(db: Session, period: TimetablePeriod, actor: User | None = None) -> bool:
    """Delete a timetable period and the assignment it mirrors."""
    record = _slot_record_for(db, period)
    if record is not None:
        db.delete(record)
    period.timetable.periods.remove(period)
    log_activity(
        db,
        actor=actor,
        action="timetable.period_deleted",
        entity_type="timetable_period",
        entity_id=period.id,
        details={
            "day": period.day,
            "period_number": period.period_number,
            "assignment_id": record.id if record is not None else None,
        },
    )
    db.commit()
    return True

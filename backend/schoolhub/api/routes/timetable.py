from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from schoolhub.api.deps import get_current_user, get_db, require_admin, resolve_academic_year
from schoolhub.models.timetable import ClassTimetable
from schoolhub.models.user import User, UserRole
from schoolhub.schemas.timetable import (
    AttendanceMarkerOut,
    DayOut,
    PeriodOut,
    PeriodUpdate,
    TeacherDailyClassOut,
    TimetableDayPayload,
    TimetableOut,
)
from schoolhub.services import assignment_service, projection
from schoolhub.services.audit import log_activity
from schoolhub.services.class_ids import format_class_id, parse_class_id
from schoolhub.services.slot_calendar import SCHOOL_DAYS, SLOTS, day_index

router = APIRouter()


def _timetable_out(db: Session, timetable: ClassTimetable) -> TimetableOut:
    counts = projection.daily_counts_for(db, timetable)
    teacher_daily_classes = [
        TeacherDailyClassOut(teacher_id=teacher_id, day=day, class_count=count)
        for (teacher_id, day), count in sorted(counts.items(), key=lambda item: (day_index(item[0][1]), item[0][0]))
    ]
    days = [
        DayOut(day=day, periods=[PeriodOut.model_validate(item) for item in timetable.periods_for(day)])
        for day in projection.ordered_days(timetable)
    ]
    first_period_teacher = timetable.first_period_teacher
    return TimetableOut(
        id=timetable.id,
        class_number=timetable.class_number,
        section=timetable.section,
        academic_year=timetable.academic_year,
        first_period_teacher_id=timetable.first_period_teacher_id,
        first_period_teacher_name=first_period_teacher.name if first_period_teacher is not None else None,
        days=days,
        teacher_daily_classes=teacher_daily_classes,
    )


@router.get("/slots")
def list_slots(current_user: User = Depends(get_current_user)) -> dict:
    return {
        "days": list(SCHOOL_DAYS),
        "slots": [
            {"periodNumber": slot.period_number, "startTime": slot.start_time, "endTime": slot.end_time}
            for slot in SLOTS
        ],
    }


@router.get("/view")
def school_view(
    academic_year: str | None = Query(default=None, alias="academicYear"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return projection.calendar_view(db, resolve_academic_year(academic_year))


@router.get("/class/{class_id}", response_model=TimetableOut)
def get_class_timetable(
    class_id: str,
    section: str | None = Query(default=None, max_length=1),
    academic_year: str | None = Query(default=None, alias="academicYear"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TimetableOut:
    class_number, section = parse_class_id(class_id, section)
    timetable = projection.get_or_404(db, class_number, section, resolve_academic_year(academic_year))
    return _timetable_out(db, timetable)


@router.get("/class/{class_id}/attendance-marker", response_model=AttendanceMarkerOut)
def get_attendance_marker(
    class_id: str,
    section: str | None = Query(default=None, max_length=1),
    academic_year: str | None = Query(default=None, alias="academicYear"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AttendanceMarkerOut:
    class_number, section = parse_class_id(class_id, section)
    timetable = projection.get_or_404(db, class_number, section, resolve_academic_year(academic_year))
    return AttendanceMarkerOut(
        can_mark_attendance=projection.can_mark_attendance(current_user, timetable),
        first_period_teacher_id=timetable.first_period_teacher_id,
    )


@router.post("/class/{class_id}/rebuild", response_model=TimetableOut)
def rebuild_class_timetable(
    class_id: str,
    section: str | None = Query(default=None, max_length=1),
    academic_year: str | None = Query(default=None, alias="academicYear"),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> TimetableOut:
    class_number, section = parse_class_id(class_id, section)
    year = resolve_academic_year(academic_year)
    timetable = projection.rebuild(db, class_number, section, year)
    log_activity(
        db,
        actor=current_user,
        action="timetable.rebuilt",
        entity_type="class_timetable",
        entity_id=format_class_id(class_number, section),
        details={"academic_year": year, "periods": len(timetable.periods)},
    )
    db.commit()
    db.refresh(timetable)
    return _timetable_out(db, timetable)


@router.get("/teacher/{teacher_id}", response_model=list[TimetableOut])
def get_teacher_timetables(
    teacher_id: str,
    academic_year: str | None = Query(default=None, alias="academicYear"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TimetableOut]:
    if current_user.role != UserRole.admin and current_user.id != teacher_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    timetables = projection.teacher_timetables(db, teacher_id, resolve_academic_year(academic_year))
    return [_timetable_out(db, item) for item in timetables]


@router.get("/period/{period_id}", response_model=PeriodOut)
def get_period(
    period_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PeriodOut:
    return projection.get_period(db, period_id)


@router.post("/", response_model=TimetableOut)
def save_timetable_day(
    payload: TimetableDayPayload,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> TimetableOut:
    class_number, section = parse_class_id(payload.class_id, payload.section)
    timetable = assignment_service.replace_day(
        db,
        class_number=class_number,
        section=section,
        academic_year=resolve_academic_year(payload.academic_year),
        day=payload.day,
        periods=[item.model_dump() for item in payload.periods],
        first_period_teacher_id=payload.first_period_teacher_id,
        actor=current_user,
    )
    return _timetable_out(db, timetable)


@router.put("/{period_id}", response_model=PeriodOut)
def update_period(
    period_id: str,
    payload: PeriodUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> PeriodOut:
    period = projection.get_period(db, period_id)
    return assignment_service.update_period(
        db,
        period,
        subject=payload.subject,
        teacher_id=payload.teacher_id,
        start_time=payload.start_time,
        end_time=payload.end_time,
        actor=current_user,
    )


@router.delete("/{period_id}")
def delete_period(
    period_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    period = projection.get_period(db, period_id)
    assignment_service.remove_period(db, period, actor=current_user)
    return {"success": True}

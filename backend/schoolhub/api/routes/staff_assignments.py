from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from schoolhub.api.deps import get_db, require_admin, resolve_academic_year
from schoolhub.models.user import User
from schoolhub.schemas.staff_assignment import StaffAssignmentOut, StaffAssignmentSubmit, normalize_school_day
from schoolhub.schemas.user import StaffMemberOut
from schoolhub.services import assignment_service, assignment_store
from schoolhub.services.assignment_service import AssignmentRequest
from schoolhub.services.class_ids import parse_class_id
from schoolhub.services.directory import list_staff

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/teachers", response_model=list[StaffMemberOut])
def list_teachers(db: Session = Depends(get_db)) -> list[StaffMemberOut]:
    return list_staff(db)


@router.get("/class/{class_id}", response_model=list[StaffAssignmentOut])
def list_class_assignments(
    class_id: str,
    section: str | None = Query(default=None, max_length=1),
    academic_year: str | None = Query(default=None, alias="academicYear"),
    db: Session = Depends(get_db),
) -> list[StaffAssignmentOut]:
    class_number, section = parse_class_id(class_id, section)
    return assignment_store.find_by_class(db, class_number, section, resolve_academic_year(academic_year))


@router.get("/teacher/{teacher_id}", response_model=list[StaffAssignmentOut])
def list_teacher_assignments(
    teacher_id: str,
    academic_year: str | None = Query(default=None, alias="academicYear"),
    db: Session = Depends(get_db),
) -> list[StaffAssignmentOut]:
    return assignment_store.find_by_teacher(db, teacher_id, resolve_academic_year(academic_year))


@router.get("/{class_number}/{section}/{day}/{academic_year}", response_model=list[StaffAssignmentOut])
def list_slot_assignments(
    class_number: str,
    section: str,
    day: str,
    academic_year: str,
    db: Session = Depends(get_db),
) -> list[StaffAssignmentOut]:
    number, section = parse_class_id(class_number, section)
    try:
        day = normalize_school_day(day)
    except ValueError:
        return []
    return assignment_store.find_by_slot(db, number, section, day, academic_year)


@router.post("/", response_model=StaffAssignmentOut)
def submit_assignment(
    payload: StaffAssignmentSubmit,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> StaffAssignmentOut:
    request = AssignmentRequest(
        class_id=payload.class_id,
        subject=payload.subject,
        teacher_id=payload.teacher_id,
        academic_year=resolve_academic_year(payload.academic_year),
        day=payload.day,
        start_time=payload.start_time,
        end_time=payload.end_time,
    )
    return assignment_service.submit(db, request, actor=current_user)


@router.delete("/{assignment_id}")
def delete_assignment(
    assignment_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    assignment_service.remove(db, assignment_id, actor=current_user)
    return {"success": True}

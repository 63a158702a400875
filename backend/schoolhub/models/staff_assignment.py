import uuid
from datetime import datetime

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    event,
    inspect,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship
from sqlalchemy.sql import func

from schoolhub.db.base import Base
from schoolhub.models.user import User
from schoolhub.services.conflict_validator import check_teacher_day_load
from schoolhub.services.slot_calendar import period_number_for

SLOT_CONSTRAINT = "uq_staff_assignments_slot"
GUARDED_FIELDS = ("teacher_id", "day", "academic_year", "start_time", "end_time")


class StaffAssignment(Base):
    __tablename__ = "staff_assignments"
    __table_args__ = (
        UniqueConstraint(
            "class_number",
            "section",
            "subject",
            "day",
            "start_time",
            "end_time",
            "academic_year",
            name=SLOT_CONSTRAINT,
        ),
        Index("ix_staff_assignments_teacher_day", "teacher_id", "day", "academic_year"),
        Index("ix_staff_assignments_class_day", "class_number", "section", "day", "academic_year"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    class_number: Mapped[int] = mapped_column(Integer, nullable=False)
    section: Mapped[str] = mapped_column(String(1), nullable=False)
    subject: Mapped[str] = mapped_column(String(100), nullable=False)
    teacher_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    day: Mapped[str] = mapped_column(String(10), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    teacher: Mapped[User] = relationship(User, lazy="joined")

    @property
    def period_number(self) -> int:
        return period_number_for(self.start_time)

    @property
    def teacher_name(self) -> str | None:
        return self.teacher.name if self.teacher is not None else None

    def same_teacher_day(self, other: "StaffAssignment") -> bool:
        return (
            self.teacher_id == other.teacher_id
            and self.day == other.day
            and self.academic_year == other.academic_year
        )


def _guarded_fields_changed(obj: StaffAssignment) -> bool:
    state = inspect(obj)
    return any(state.attrs[name].history.has_changes() for name in GUARDED_FIELDS)


@event.listens_for(Session, "before_flush")
def guard_teacher_day_load(session, flush_context, instances):
    """Re-check the daily load rules for every assignment about to be written."""
    touched = [
        obj
        for obj in (*session.new, *session.dirty)
        if isinstance(obj, StaffAssignment) and obj not in session.deleted
    ]
    for obj in touched:
        if obj not in session.new and not _guarded_fields_changed(obj):
            continue
        with session.no_autoflush:
            persisted = session.execute(
                select(StaffAssignment).where(
                    StaffAssignment.teacher_id == obj.teacher_id,
                    StaffAssignment.day == obj.day,
                    StaffAssignment.academic_year == obj.academic_year,
                )
            ).scalars()
            group: dict[int, StaffAssignment] = {}
            for other in (*persisted, *touched):
                if other is obj or other in session.deleted:
                    continue
                if other.same_teacher_day(obj):
                    group[id(other)] = other
        check_teacher_day_load(obj, list(group.values()))

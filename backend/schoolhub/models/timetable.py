import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from schoolhub.db.base import Base
from schoolhub.models.user import User
from schoolhub.services.conflict_validator import DAILY_PERIOD_LIMIT
from schoolhub.services.slot_calendar import PERIODS_PER_DAY


class ClassTimetable(Base):
    __tablename__ = "class_timetables"
    __table_args__ = (
        UniqueConstraint("class_number", "section", "academic_year", name="uq_class_timetables_class_year"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    class_number: Mapped[int] = mapped_column(Integer, nullable=False)
    section: Mapped[str] = mapped_column(String(1), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    first_period_teacher_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    periods: Mapped[list["TimetablePeriod"]] = relationship(
        back_populates="timetable",
        cascade="all, delete-orphan",
        order_by="TimetablePeriod.period_number",
    )
    first_period_teacher: Mapped[User | None] = relationship(User)

    def periods_for(self, day: str) -> list["TimetablePeriod"]:
        return sorted((item for item in self.periods if item.day == day), key=lambda item: item.period_number)

    def period_at(self, day: str, period_number: int) -> "TimetablePeriod | None":
        for item in self.periods:
            if item.day == day and item.period_number == period_number:
                return item
        return None

    def is_teacher_assigned(self, teacher_id: str, day: str) -> bool:
        return any(item.teacher_id == teacher_id for item in self.periods_for(day))

    def can_assign_teacher(self, teacher_id: str, day: str, period_number: int, class_count: int) -> bool:
        """``class_count`` is the teacher's current number of classes that day."""
        if class_count >= DAILY_PERIOD_LIMIT:
            return False
        for neighbour in (period_number - 1, period_number + 1):
            if not 1 <= neighbour <= PERIODS_PER_DAY:
                continue
            period = self.period_at(day, neighbour)
            if period is not None and period.teacher_id == teacher_id:
                return False
        return True


class TimetablePeriod(Base):
    __tablename__ = "timetable_periods"
    __table_args__ = (
        UniqueConstraint("timetable_id", "day", "period_number", name="uq_timetable_periods_day_period"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    timetable_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("class_timetables.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day: Mapped[str] = mapped_column(String(10), nullable=False)
    period_number: Mapped[int] = mapped_column(Integer, nullable=False)
    subject: Mapped[str] = mapped_column(String(100), nullable=False)
    teacher_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)

    timetable: Mapped[ClassTimetable] = relationship(back_populates="periods")
    teacher: Mapped[User] = relationship(User, lazy="joined")

    @property
    def teacher_name(self) -> str | None:
        return self.teacher.name if self.teacher is not None else None

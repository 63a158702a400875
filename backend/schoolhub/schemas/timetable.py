from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from schoolhub.schemas.staff_assignment import normalize_school_day, normalize_clock_time


class PeriodIn(BaseModel):
    period_number: int | None = Field(default=None, alias="periodNumber", ge=1, le=8)
    subject: str = Field(min_length=1, max_length=100)
    teacher_id: str = Field(alias="teacherId", min_length=1, max_length=36)
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    model_config = {"populate_by_name": True}

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return normalize_clock_time(value)


class TimetableDayPayload(BaseModel):
    class_id: str = Field(alias="classId", min_length=1, max_length=5)
    section: str | None = Field(default=None, max_length=1)
    academic_year: str | None = Field(default=None, alias="academicYear", min_length=1, max_length=20)
    day: str
    periods: list[PeriodIn] = Field(default_factory=list, max_length=8)
    first_period_teacher_id: str | None = Field(default=None, alias="firstPeriodTeacherId", max_length=36)

    model_config = {"populate_by_name": True}

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_school_day(value)


class PeriodUpdate(BaseModel):
    subject: str = Field(min_length=1, max_length=100)
    teacher_id: str = Field(alias="teacherId", min_length=1, max_length=36)
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    model_config = {"populate_by_name": True}

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return normalize_clock_time(value)


class PeriodOut(BaseModel):
    id: str
    day: str
    period_number: int = Field(serialization_alias="periodNumber")
    subject: str
    teacher_id: str = Field(serialization_alias="teacherId")
    teacher_name: str | None = Field(default=None, serialization_alias="teacherName")
    start_time: str = Field(serialization_alias="startTime")
    end_time: str = Field(serialization_alias="endTime")

    model_config = {"from_attributes": True}


class DayOut(BaseModel):
    day: str
    periods: list[PeriodOut]


class TeacherDailyClassOut(BaseModel):
    teacher_id: str = Field(serialization_alias="teacherId")
    day: str
    class_count: int = Field(serialization_alias="classCount")


class TimetableOut(BaseModel):
    id: str
    class_number: int = Field(serialization_alias="classNumber")
    section: str
    academic_year: str = Field(serialization_alias="academicYear")
    first_period_teacher_id: str | None = Field(default=None, serialization_alias="firstPeriodTeacherId")
    first_period_teacher_name: str | None = Field(default=None, serialization_alias="firstPeriodTeacherName")
    days: list[DayOut]
    teacher_daily_classes: list[TeacherDailyClassOut] = Field(serialization_alias="teacherDailyClasses")


class AttendanceMarkerOut(BaseModel):
    can_mark_attendance: bool = Field(serialization_alias="canMarkAttendance")
    first_period_teacher_id: str | None = Field(default=None, serialization_alias="firstPeriodTeacherId")

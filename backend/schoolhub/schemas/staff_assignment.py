from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from schoolhub.services.slot_calendar import SCHOOL_DAYS, TIME_PATTERN


def normalize_school_day(value: str) -> str:
    day = value.strip().capitalize()
    if day not in SCHOOL_DAYS:
        raise ValueError(f"day must be one of {', '.join(SCHOOL_DAYS)}")
    return day


def normalize_clock_time(value: str) -> str:
    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value


class StaffAssignmentSubmit(BaseModel):
    class_id: str = Field(alias="classId", min_length=1, max_length=5)
    subject: str = Field(min_length=1, max_length=100)
    teacher_id: str = Field(alias="teacherId", min_length=1, max_length=36)
    academic_year: str | None = Field(default=None, alias="academicYear", min_length=1, max_length=20)
    day: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    model_config = {"populate_by_name": True}

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_school_day(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return normalize_clock_time(value)

    @field_validator("subject")
    @classmethod
    def normalize_subject(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Subject cannot be empty")
        return trimmed


class StaffAssignmentOut(BaseModel):
    id: str
    class_number: int = Field(serialization_alias="classNumber")
    section: str
    subject: str
    teacher_id: str = Field(serialization_alias="teacherId")
    teacher_name: str | None = Field(default=None, serialization_alias="teacherName")
    academic_year: str = Field(serialization_alias="academicYear")
    day: str
    start_time: str = Field(serialization_alias="startTime")
    end_time: str = Field(serialization_alias="endTime")
    period_number: int = Field(serialization_alias="periodNumber")
    created_at: datetime | None = Field(default=None, serialization_alias="createdAt")

    model_config = {"from_attributes": True}

"""Schemas for classes, enrollments and schedules."""

import re
from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field, model_validator

from edura.models.classroom import ScheduleColor

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def validate_hhmm(value: str) -> str:
    """Accept 24h "HH:MM" only."""
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must use 24h HH:MM format (e.g. 09:30)")
    return value


TimeOfDay = Annotated[str, AfterValidator(validate_hhmm)]


class ClassCreate(BaseModel):
    """Schema for a teacher creating a class."""

    class_name: str = Field(..., min_length=1, max_length=200)
    subject: str | None = Field(None, max_length=100)


class TuitionRateUpdate(BaseModel):
    """Schema for a manager setting a class's monthly tuition."""

    tuition_rate: int = Field(..., ge=0)


class ClassResponse(BaseModel):
    """Class response schema."""

    id: UUID
    class_name: str
    class_code: str
    subject: str | None
    tuition_rate: int | None
    teacher_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class ClassWithCount(ClassResponse):
    """Class with number of enrolled students."""

    student_count: int = 0
    teacher_name: str | None = None


class JoinClassRequest(BaseModel):
    """Schema for a student joining a class by code."""

    class_code: str = Field(..., min_length=5, max_length=5)


class EnrollmentResponse(BaseModel):
    id: UUID
    student_id: UUID
    class_id: UUID
    enrolled_at: datetime

    model_config = {"from_attributes": True}


class ClassStudent(BaseModel):
    """Enrolled student as seen by the teacher or manager."""

    id: UUID
    name: str
    email: str
    grade: str | None
    school_name: str | None
    parent_email: str | None
    parent_phone: str | None
    enrolled_at: datetime


class ScheduleCreate(BaseModel):
    """Schema for creating a weekly schedule slot."""

    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday, 6 = Saturday")
    start_time: TimeOfDay
    end_time: TimeOfDay
    title: str = Field(..., min_length=1, max_length=200)
    color: ScheduleColor = ScheduleColor.BLUE
    location: str | None = Field(None, max_length=200)
    meeting_link: str | None = None

    @model_validator(mode="after")
    def validate_times(self) -> "ScheduleCreate":
        """End must come after start."""
        if self.start_time >= self.end_time:
            raise ValueError("End time must be after start time")
        return self


class ScheduleResponse(BaseModel):
    id: UUID
    class_id: UUID
    day_of_week: int
    start_time: str
    end_time: str
    title: str
    color: ScheduleColor
    location: str | None
    meeting_link: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ScheduleCreatedResponse(BaseModel):
    """New schedule plus a warning flag for same-day overlaps."""

    schedule: ScheduleResponse
    has_overlap: bool

"""Teacher attendance schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from edura.models.attendance import AttendanceStatus
from edura.models.classroom import ScheduleColor


class CheckInRequest(BaseModel):
    schedule_id: UUID


class CheckOutRequest(BaseModel):
    log_id: UUID


class AttendanceLogResponse(BaseModel):
    """Schema for attendance log response."""

    id: UUID
    schedule_id: UUID
    class_id: UUID
    teacher_id: UUID
    session_date: str
    check_in_time: datetime | None
    check_out_time: datetime | None
    actual_duration_minutes: int | None
    status: AttendanceStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AttendanceLogDetail(AttendanceLogResponse):
    """Attendance log with its session and class."""

    class_name: str
    title: str
    start_time: str
    end_time: str
    teacher_name: str | None = None


class ActiveSchedule(BaseModel):
    """Today's session of the teacher and what can be done with it now."""

    schedule_id: UUID
    class_id: UUID
    class_name: str
    title: str
    start_time: str
    end_time: str
    location: str | None
    color: ScheduleColor
    can_check_in: bool
    can_check_out: bool
    existing_log: AttendanceLogResponse | None = None


class MissedSessionsResponse(BaseModel):
    """Result of a manager-triggered missed-session run."""

    session_date: str
    marked_count: int
    total_schedules_checked: int
    failed_count: int

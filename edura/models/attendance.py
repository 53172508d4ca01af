"""Teacher attendance model."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edura.core.database import BaseModel


class AttendanceStatus(str, Enum):
    """Session attendance status."""

    CHECKED_IN = "checked_in"
    COMPLETED = "completed"
    MISSED = "missed"


class AttendanceLog(BaseModel):
    """One teacher session record per schedule per day."""

    __tablename__ = "attendance_logs"
    __table_args__ = (
        UniqueConstraint("schedule_id", "session_date", name="uq_attendance_schedule_date"),
    )

    schedule_id: Mapped[UUID] = mapped_column(
        ForeignKey("class_schedules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    class_id: Mapped[UUID] = mapped_column(
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    teacher_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_date: Mapped[str] = mapped_column(String(10), nullable=False)  # "YYYY-MM-DD"
    check_in_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    check_out_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    actual_duration_minutes: Mapped[int | None] = mapped_column(Integer)
    status: Mapped[AttendanceStatus] = mapped_column(
        String(20),
        nullable=False,
        default=AttendanceStatus.CHECKED_IN,
        server_default="checked_in",
    )

    # Relationships
    schedule: Mapped["ClassSchedule"] = relationship("ClassSchedule")
    classroom: Mapped["Classroom"] = relationship("Classroom")
    teacher: Mapped["User"] = relationship("User")

    def __repr__(self) -> str:
        return (
            f"<AttendanceLog(schedule={self.schedule_id}, date={self.session_date}, "
            f"status={self.status})>"
        )


from edura.models.classroom import ClassSchedule, Classroom
from edura.models.user import User

"""Class, Enrollment and ClassSchedule models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, SmallInteger, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edura.core.database import BaseModel


class ScheduleColor(str, Enum):
    """Display color of a weekly slot."""

    BLUE = "blue"
    GREEN = "green"
    PURPLE = "purple"
    ORANGE = "orange"
    PINK = "pink"
    TEAL = "teal"


class Classroom(BaseModel):
    """A class taught by one teacher."""

    __tablename__ = "classes"

    class_name: Mapped[str] = mapped_column(String(200), nullable=False)
    class_code: Mapped[str] = mapped_column(
        String(5),
        unique=True,
        nullable=False,
        index=True,
    )  # 5 uppercase alphanumerics, used by students to join
    subject: Mapped[str | None] = mapped_column(String(100))
    tuition_rate: Mapped[int | None] = mapped_column(Integer)  # Monthly, smallest currency unit
    teacher_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Relationships
    teacher: Mapped["User"] = relationship("User", back_populates="taught_classes")
    enrollments: Mapped[list["Enrollment"]] = relationship(
        "Enrollment", back_populates="classroom", cascade="all, delete-orphan"
    )
    schedules: Mapped[list["ClassSchedule"]] = relationship(
        "ClassSchedule", back_populates="classroom", cascade="all, delete-orphan"
    )

    @property
    def is_billable(self) -> bool:
        return bool(self.tuition_rate and self.tuition_rate > 0)

    def __repr__(self) -> str:
        return f"<Classroom(id={self.id}, code={self.class_code})>"


class Enrollment(BaseModel):
    """A student's membership in a class."""

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "class_id", name="uq_enrollment_student_class"),
    )

    student_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    class_id: Mapped[UUID] = mapped_column(
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    classroom: Mapped["Classroom"] = relationship("Classroom", back_populates="enrollments")
    student: Mapped["User"] = relationship("User")


class ClassSchedule(BaseModel):
    """Weekly recurring session of a class."""

    __tablename__ = "class_schedules"

    class_id: Mapped[UUID] = mapped_column(
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)  # 0 = Sunday
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)  # "HH:MM"
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)  # "HH:MM"
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    color: Mapped[ScheduleColor] = mapped_column(
        String(20),
        default=ScheduleColor.BLUE,
        server_default="blue",
    )
    location: Mapped[str | None] = mapped_column(String(200))
    meeting_link: Mapped[str | None] = mapped_column(Text)

    # Relationships
    classroom: Mapped["Classroom"] = relationship("Classroom", back_populates="schedules")

    def __repr__(self) -> str:
        return (
            f"<ClassSchedule(id={self.id}, day={self.day_of_week}, "
            f"{self.start_time}-{self.end_time})>"
        )


from edura.models.user import User

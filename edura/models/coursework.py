"""Lecture, Assignment and Submission models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edura.core.database import BaseModel


class LectureType(str, Enum):
    FILE = "file"
    YOUTUBE = "youtube"


class AssignmentType(str, Enum):
    QUIZ = "quiz"
    WRITTEN = "written"


class Lecture(BaseModel):
    """Lecture material attached to a class."""

    __tablename__ = "lectures"

    class_id: Mapped[UUID] = mapped_column(
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    type: Mapped[LectureType] = mapped_column(String(20), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    lecture_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    classroom: Mapped["Classroom"] = relationship("Classroom")


class Assignment(BaseModel):
    """Quiz or written assignment of a class."""

    __tablename__ = "assignments"

    class_id: Mapped[UUID] = mapped_column(
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    assignment_type: Mapped[AssignmentType] = mapped_column(
        String(20),
        nullable=False,
        default=AssignmentType.QUIZ,
        server_default="quiz",
    )
    assignment_content: Mapped[str | None] = mapped_column(Text)  # JSON document
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    testing_duration: Mapped[int | None] = mapped_column(Integer)  # Minutes, quizzes only

    classroom: Mapped["Classroom"] = relationship("Classroom")
    submissions: Mapped[list["Submission"]] = relationship(
        "Submission", back_populates="assignment", cascade="all, delete-orphan"
    )


class Submission(BaseModel):
    """A student's answer to an assignment."""

    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
    )

    assignment_id: Mapped[UUID] = mapped_column(
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    submission_content: Mapped[str | None] = mapped_column(Text)  # JSON document
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    grade: Mapped[int | None] = mapped_column(Integer)  # NULL until graded
    feedback: Mapped[str | None] = mapped_column(Text)

    assignment: Mapped["Assignment"] = relationship("Assignment", back_populates="submissions")
    student: Mapped["User"] = relationship("User")


from edura.models.classroom import Classroom
from edura.models.user import User

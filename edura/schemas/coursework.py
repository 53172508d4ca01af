"""Lecture, assignment and submission schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from edura.models.coursework import AssignmentType, LectureType


class LectureCreate(BaseModel):
    """Schema for a link lecture (already hosted file or YouTube video)."""

    class_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    type: LectureType
    url: HttpUrl
    lecture_date: datetime


class LectureResponse(BaseModel):
    id: UUID
    class_id: UUID
    title: str
    description: str | None
    type: LectureType
    url: str
    lecture_date: datetime
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AssignmentCreate(BaseModel):
    """Schema for creating an assignment."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    assignment_type: AssignmentType = AssignmentType.QUIZ
    assignment_content: str | None = Field(
        None, description='JSON, for quizzes: {"questions": [{"id", "correctAnswer"}]}'
    )
    due_date: datetime | None = None
    testing_duration: int | None = Field(None, ge=1, description="Minutes, quizzes only")


class AssignmentResponse(BaseModel):
    id: UUID
    class_id: UUID
    title: str
    description: str | None
    assignment_type: AssignmentType
    assignment_content: str | None
    due_date: datetime | None
    testing_duration: int | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubmissionCreate(BaseModel):
    """Schema for a student's answers (JSON document)."""

    submission_content: str


class SubmissionResponse(BaseModel):
    id: UUID
    assignment_id: UUID
    student_id: UUID
    submission_content: str | None
    submitted_at: datetime
    grade: int | None
    feedback: str | None

    model_config = ConfigDict(from_attributes=True)


class SubmissionGrade(BaseModel):
    """Schema for grading a submission by hand."""

    grade: int = Field(..., ge=0, le=100)
    feedback: str | None = None


class SubmissionWithStudent(SubmissionResponse):
    student_name: str
    student_email: str


class UploadedFile(BaseModel):
    """A stored submission attachment."""

    name: str
    url: str
    type: str
    size: int


class SubmissionUploadResponse(BaseModel):
    files: list[UploadedFile]

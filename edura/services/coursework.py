"""Lecture, assignment and submission service."""

import json
import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edura.core.storage import BlobStorage
from edura.models.classroom import Classroom, Enrollment
from edura.models.coursework import Assignment, AssignmentType, Lecture, LectureType, Submission
from edura.models.user import User
from edura.schemas.coursework import AssignmentCreate, LectureCreate

logger = logging.getLogger(__name__)


# ============== Lectures ==============


async def create_lecture(db: AsyncSession, lecture_data: LectureCreate) -> Lecture:
    lecture = Lecture(
        class_id=lecture_data.class_id,
        title=lecture_data.title,
        description=lecture_data.description,
        type=lecture_data.type,
        url=str(lecture_data.url),
        lecture_date=lecture_data.lecture_date,
    )
    db.add(lecture)
    await db.commit()
    await db.refresh(lecture)
    return lecture


async def upload_lecture(
    db: AsyncSession,
    storage: BlobStorage,
    classroom: Classroom,
    *,
    file_name: str,
    content: bytes,
    content_type: str | None,
    title: str,
    description: str | None,
    lecture_date: datetime,
) -> Lecture:
    """Store the lecture file, then record a `file` lecture pointing at it."""
    url = storage.put(file_name, content, content_type)

    lecture = Lecture(
        class_id=classroom.id,
        title=title,
        description=description or "",
        type=LectureType.FILE,
        url=url,
        lecture_date=lecture_date,
    )
    db.add(lecture)
    await db.commit()
    await db.refresh(lecture)
    return lecture


async def get_class_lectures(db: AsyncSession, class_id: UUID) -> list[Lecture]:
    result = await db.execute(
        select(Lecture).where(Lecture.class_id == class_id).order_by(Lecture.created_at)
    )
    return list(result.scalars().all())


async def get_teacher_lecture(
    db: AsyncSession, lecture_id: UUID, teacher_id: UUID
) -> Lecture | None:
    result = await db.execute(
        select(Lecture)
        .join(Classroom, Classroom.id == Lecture.class_id)
        .where(Lecture.id == lecture_id, Classroom.teacher_id == teacher_id)
    )
    return result.scalar_one_or_none()


async def delete_lecture(db: AsyncSession, lecture: Lecture) -> None:
    await db.delete(lecture)
    await db.commit()


# ============== Assignments ==============


async def create_assignment(
    db: AsyncSession, classroom: Classroom, assignment_data: AssignmentCreate
) -> Assignment:
    """Create an assignment; the time limit only applies to quizzes."""
    testing_duration = (
        assignment_data.testing_duration
        if assignment_data.assignment_type == AssignmentType.QUIZ
        else None
    )
    assignment = Assignment(
        class_id=classroom.id,
        title=assignment_data.title,
        description=assignment_data.description,
        assignment_type=assignment_data.assignment_type,
        assignment_content=assignment_data.assignment_content,
        due_date=assignment_data.due_date,
        testing_duration=testing_duration,
    )
    db.add(assignment)
    await db.commit()
    await db.refresh(assignment)
    return assignment


async def get_class_assignments(db: AsyncSession, class_id: UUID) -> list[Assignment]:
    result = await db.execute(
        select(Assignment)
        .where(Assignment.class_id == class_id)
        .order_by(Assignment.created_at.desc())
    )
    return list(result.scalars().all())


async def get_teacher_assignment(
    db: AsyncSession, assignment_id: UUID, teacher_id: UUID
) -> Assignment | None:
    result = await db.execute(
        select(Assignment)
        .join(Classroom, Classroom.id == Assignment.class_id)
        .where(Assignment.id == assignment_id, Classroom.teacher_id == teacher_id)
    )
    return result.scalar_one_or_none()


async def get_student_assignment(
    db: AsyncSession, assignment_id: UUID, student_id: UUID
) -> Assignment | None:
    """Get an assignment only if the student is enrolled in its class."""
    result = await db.execute(
        select(Assignment)
        .join(Enrollment, Enrollment.class_id == Assignment.class_id)
        .where(Assignment.id == assignment_id, Enrollment.student_id == student_id)
    )
    return result.scalar_one_or_none()


# ============== Submissions ==============


def _normalize_answer(value) -> str | None:
    if value is None:
        return None
    return str(value).strip().lower()


def grade_quiz(assignment_content: str | None, submission_content: str) -> int | None:
    """
    Percentage of questions answered correctly, rounded.

    The assignment holds ``{"questions": [{"id": ..., "correctAnswer": ...}]}``
    and the submission ``{question_id: answer}``. Answers are compared
    case-insensitively, ignoring surrounding whitespace. Returns None when
    there is nothing to grade or either document is malformed.
    """
    if not assignment_content:
        return None

    try:
        questions = json.loads(assignment_content).get("questions")
        answers = json.loads(submission_content)
        if not questions:
            return None

        correct = 0
        for question in questions:
            student_answer = _normalize_answer(answers.get(str(question.get("id"))))
            correct_answer = _normalize_answer(question.get("correctAnswer"))
            if student_answer == correct_answer:
                correct += 1
    except (ValueError, AttributeError, TypeError):
        logger.warning("Could not grade submission", exc_info=True)
        return None

    return round(correct / len(questions) * 100)


async def get_submission(
    db: AsyncSession, assignment_id: UUID, student_id: UUID
) -> Submission | None:
    result = await db.execute(
        select(Submission).where(
            Submission.assignment_id == assignment_id,
            Submission.student_id == student_id,
        )
    )
    return result.scalar_one_or_none()


async def submit_assignment(
    db: AsyncSession,
    assignment: Assignment,
    student: User,
    submission_content: str,
) -> Submission:
    """Record a submission; quizzes are graded now, written work later."""
    if assignment.assignment_type == AssignmentType.WRITTEN:
        grade = None
    else:
        grade = grade_quiz(assignment.assignment_content, submission_content)

    submission = Submission(
        assignment_id=assignment.id,
        student_id=student.id,
        submission_content=submission_content,
        grade=grade,
    )
    db.add(submission)
    await db.commit()
    await db.refresh(submission)
    return submission


async def get_assignment_submissions(
    db: AsyncSession, assignment_id: UUID
) -> list[tuple[Submission, User]]:
    result = await db.execute(
        select(Submission, User)
        .join(User, User.id == Submission.student_id)
        .where(Submission.assignment_id == assignment_id)
        .order_by(Submission.submitted_at)
    )
    return [(row[0], row[1]) for row in result.all()]


async def get_teacher_submission(
    db: AsyncSession, submission_id: UUID, teacher_id: UUID
) -> Submission | None:
    """Get a submission only if it belongs to one of the teacher's classes."""
    result = await db.execute(
        select(Submission)
        .join(Assignment, Assignment.id == Submission.assignment_id)
        .join(Classroom, Classroom.id == Assignment.class_id)
        .where(Submission.id == submission_id, Classroom.teacher_id == teacher_id)
    )
    return result.scalar_one_or_none()


async def grade_submission(
    db: AsyncSession,
    submission: Submission,
    grade: int,
    feedback: str | None = None,
) -> Submission:
    """Set the grade by hand; replaces any automatic quiz grade."""
    submission.grade = grade
    submission.feedback = feedback
    await db.commit()
    await db.refresh(submission)
    logger.info("Graded submission %s: %d", submission.id, grade)
    return submission


def store_submission_files(
    storage: BlobStorage, files: list[tuple[str, bytes, str]]
) -> list[dict]:
    """Store attachments and describe them as {name, url, type, size}."""
    stored = []
    for name, content, content_type in files:
        url = storage.put(name, content, content_type)
        stored.append({"name": name, "url": url, "type": content_type, "size": len(content)})
    return stored

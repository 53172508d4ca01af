"""Class, enrollment and schedule service."""

import secrets
import string
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from edura.core.clock import parse_hhmm
from edura.core.permissions import Role
from edura.models.classroom import ClassSchedule, Classroom, Enrollment
from edura.models.user import User
from edura.schemas.classroom import ClassCreate, ScheduleCreate
from edura.services.tenancy import class_belongs_to_manager

CLASS_CODE_ALPHABET = string.ascii_uppercase + string.digits
CLASS_CODE_LENGTH = 5


async def get_class_by_id(db: AsyncSession, class_id: UUID) -> Classroom | None:
    """Get a class by ID."""
    result = await db.execute(select(Classroom).where(Classroom.id == class_id))
    return result.scalar_one_or_none()


async def get_teacher_class(
    db: AsyncSession, class_id: UUID, teacher_id: UUID
) -> Classroom | None:
    """Get a class only if the teacher owns it."""
    result = await db.execute(
        select(Classroom).where(
            Classroom.id == class_id,
            Classroom.teacher_id == teacher_id,
        )
    )
    return result.scalar_one_or_none()


async def get_class_by_code(db: AsyncSession, class_code: str) -> Classroom | None:
    result = await db.execute(
        select(Classroom).where(Classroom.class_code == class_code.upper())
    )
    return result.scalar_one_or_none()


async def _generate_class_code(db: AsyncSession) -> str:
    while True:
        code = "".join(secrets.choice(CLASS_CODE_ALPHABET) for _ in range(CLASS_CODE_LENGTH))
        if await get_class_by_code(db, code) is None:
            return code


async def create_class(
    db: AsyncSession, teacher: User, class_data: ClassCreate
) -> Classroom:
    """Create a class owned by the teacher with a fresh join code."""
    classroom = Classroom(
        class_name=class_data.class_name,
        subject=class_data.subject,
        class_code=await _generate_class_code(db),
        teacher_id=teacher.id,
    )
    db.add(classroom)
    await db.commit()
    await db.refresh(classroom)
    return classroom


async def get_classes_with_counts(
    db: AsyncSession,
    *,
    teacher_ids: list[UUID] | None = None,
    class_ids: list[UUID] | None = None,
) -> list[tuple[Classroom, int, str]]:
    """Classes with enrolled-student count and teacher name."""
    query = (
        select(Classroom, func.count(Enrollment.id), User.name)
        .join(User, User.id == Classroom.teacher_id)
        .outerjoin(Enrollment, Enrollment.class_id == Classroom.id)
        .group_by(Classroom.id, User.name)
        .order_by(Classroom.class_name)
    )
    if teacher_ids is not None:
        query = query.where(Classroom.teacher_id.in_(teacher_ids))
    if class_ids is not None:
        query = query.where(Classroom.id.in_(class_ids))

    result = await db.execute(query)
    return [(row[0], row[1], row[2]) for row in result.all()]


async def update_tuition_rate(
    db: AsyncSession, classroom: Classroom, tuition_rate: int
) -> Classroom:
    classroom.tuition_rate = tuition_rate
    await db.commit()
    await db.refresh(classroom)
    return classroom


# ============== Enrollments ==============


async def get_enrollment(
    db: AsyncSession, student_id: UUID, class_id: UUID
) -> Enrollment | None:
    result = await db.execute(
        select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.class_id == class_id,
        )
    )
    return result.scalar_one_or_none()


async def get_student_class_ids(db: AsyncSession, student_id: UUID) -> list[UUID]:
    result = await db.execute(
        select(Enrollment.class_id).where(Enrollment.student_id == student_id)
    )
    return list(result.scalars().all())


async def enroll_student(
    db: AsyncSession, student: User, classroom: Classroom
) -> Enrollment:
    enrollment = Enrollment(student_id=student.id, class_id=classroom.id)
    db.add(enrollment)
    await db.commit()
    await db.refresh(enrollment)
    return enrollment


async def remove_enrollment(db: AsyncSession, enrollment: Enrollment) -> None:
    await db.delete(enrollment)
    await db.commit()


async def get_class_students(
    db: AsyncSession, class_id: UUID
) -> list[tuple[User, Enrollment]]:
    result = await db.execute(
        select(User, Enrollment)
        .join(Enrollment, Enrollment.student_id == User.id)
        .where(Enrollment.class_id == class_id)
        .order_by(User.name)
    )
    return [(row[0], row[1]) for row in result.all()]


# ============== Schedules ==============


def times_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Half-open interval overlap of two "HH:MM" ranges."""
    return parse_hhmm(start1) < parse_hhmm(end2) and parse_hhmm(start2) < parse_hhmm(end1)


async def get_class_schedules(db: AsyncSession, class_id: UUID) -> list[ClassSchedule]:
    result = await db.execute(
        select(ClassSchedule)
        .where(ClassSchedule.class_id == class_id)
        .order_by(ClassSchedule.day_of_week, ClassSchedule.start_time)
    )
    return list(result.scalars().all())


async def create_schedule(
    db: AsyncSession, classroom: Classroom, schedule_data: ScheduleCreate
) -> tuple[ClassSchedule, bool]:
    """
    Create a weekly slot for the class.

    Overlapping slots on the same day are allowed; the returned flag tells
    the caller one exists.
    """
    same_day = [
        s
        for s in await get_class_schedules(db, classroom.id)
        if s.day_of_week == schedule_data.day_of_week
    ]
    has_overlap = any(
        times_overlap(schedule_data.start_time, schedule_data.end_time, s.start_time, s.end_time)
        for s in same_day
    )

    schedule = ClassSchedule(
        class_id=classroom.id,
        **schedule_data.model_dump(),
    )
    db.add(schedule)
    await db.commit()
    await db.refresh(schedule)
    return schedule, has_overlap


async def get_teacher_schedule(
    db: AsyncSession, schedule_id: UUID, teacher_id: UUID
) -> ClassSchedule | None:
    result = await db.execute(
        select(ClassSchedule)
        .join(Classroom, Classroom.id == ClassSchedule.class_id)
        .where(ClassSchedule.id == schedule_id, Classroom.teacher_id == teacher_id)
    )
    return result.scalar_one_or_none()


async def delete_schedule(db: AsyncSession, schedule: ClassSchedule) -> None:
    await db.delete(schedule)
    await db.commit()


async def can_view_class(db: AsyncSession, user: User, classroom: Classroom) -> bool:
    """Owner teacher, enrolled student or the tenant's manager."""
    if user.role == Role.TEACHER:
        return classroom.teacher_id == user.id
    if user.role == Role.STUDENT:
        return await get_enrollment(db, user.id, classroom.id) is not None
    return await class_belongs_to_manager(db, classroom.id, user.id)

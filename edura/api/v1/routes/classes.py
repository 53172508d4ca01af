"""Classes, enrollments and schedules API routes."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from edura.core.deps import CurrentUser, DbSession, Manager, Student, Teacher
from edura.core.permissions import Role
from edura.schemas.classroom import (
    ClassCreate,
    ClassResponse,
    ClassStudent,
    ClassWithCount,
    EnrollmentResponse,
    JoinClassRequest,
    ScheduleCreate,
    ScheduleCreatedResponse,
    ScheduleResponse,
    TuitionRateUpdate,
)
from edura.services import classroom as classroom_service
from edura.services.tenancy import class_belongs_to_manager, get_manager_member_ids

router = APIRouter(tags=["Classes"])


@router.post(
    "/classes",
    response_model=ClassResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_class(
    class_data: ClassCreate,
    db: DbSession,
    current_user: Teacher,
):
    """Create a class; a unique 5-character join code is generated."""
    return await classroom_service.create_class(db, current_user, class_data)


@router.get("/classes", response_model=list[ClassWithCount])
async def list_classes(
    db: DbSession,
    current_user: CurrentUser,
):
    """
    List classes visible to the current user.

    - Teacher: own classes
    - Student: enrolled classes
    - Manager: all classes of the center's teachers
    """
    if current_user.role == Role.TEACHER:
        rows = await classroom_service.get_classes_with_counts(db, teacher_ids=[current_user.id])
    elif current_user.role == Role.STUDENT:
        class_ids = await classroom_service.get_student_class_ids(db, current_user.id)
        rows = await classroom_service.get_classes_with_counts(db, class_ids=class_ids)
    else:
        teacher_ids = await get_manager_member_ids(db, current_user.id, Role.TEACHER)
        rows = await classroom_service.get_classes_with_counts(db, teacher_ids=teacher_ids)

    return [
        ClassWithCount(
            **ClassResponse.model_validate(classroom).model_dump(),
            student_count=count,
            teacher_name=teacher_name,
        )
        for classroom, count, teacher_name in rows
    ]


@router.post(
    "/classes/join",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def join_class(
    join_data: JoinClassRequest,
    db: DbSession,
    current_user: Student,
):
    """Join a class using its code (case-insensitive)."""
    classroom = await classroom_service.get_class_by_code(db, join_data.class_code)
    if not classroom:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class not found",
        )

    existing = await classroom_service.get_enrollment(db, current_user.id, classroom.id)
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Already enrolled in this class",
        )

    return await classroom_service.enroll_student(db, current_user, classroom)


@router.get("/classes/{class_id}", response_model=ClassResponse)
async def get_class(
    class_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
):
    """Get class by ID."""
    classroom = await classroom_service.get_class_by_id(db, class_id)
    if not classroom or not await classroom_service.can_view_class(db, current_user, classroom):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class not found",
        )
    return classroom


@router.patch("/classes/{class_id}/tuition-rate", response_model=ClassResponse)
async def update_tuition_rate(
    class_id: UUID,
    rate_data: TuitionRateUpdate,
    db: DbSession,
    current_user: Manager,
):
    """Set the monthly tuition of a class in the manager's center."""
    classroom = await classroom_service.get_class_by_id(db, class_id)
    if not classroom or not await class_belongs_to_manager(db, class_id, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class not found",
        )
    return await classroom_service.update_tuition_rate(db, classroom, rate_data.tuition_rate)


@router.delete("/classes/{class_id}/enrollment", status_code=status.HTTP_204_NO_CONTENT)
async def leave_class(
    class_id: UUID,
    db: DbSession,
    current_user: Student,
):
    """Leave a class."""
    enrollment = await classroom_service.get_enrollment(db, current_user.id, class_id)
    if not enrollment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Enrollment not found",
        )
    await classroom_service.remove_enrollment(db, enrollment)


@router.get("/classes/{class_id}/students", response_model=list[ClassStudent])
async def list_class_students(
    class_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
):
    """List students of a class (owner teacher or the center's manager)."""
    classroom = await classroom_service.get_class_by_id(db, class_id)
    if (
        not classroom
        or current_user.role == Role.STUDENT
        or not await classroom_service.can_view_class(db, current_user, classroom)
    ):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class not found",
        )

    rows = await classroom_service.get_class_students(db, class_id)
    return [
        ClassStudent(
            id=student.id,
            name=student.name,
            email=student.email,
            grade=student.grade,
            school_name=student.school_name,
            parent_email=student.parent_email,
            parent_phone=student.parent_phone,
            enrolled_at=enrollment.enrolled_at,
        )
        for student, enrollment in rows
    ]


# ============== Schedules ==============


@router.post(
    "/classes/{class_id}/schedules",
    response_model=ScheduleCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_schedule(
    class_id: UUID,
    schedule_data: ScheduleCreate,
    db: DbSession,
    current_user: Teacher,
):
    """
    Add a weekly slot to a class.

    Same-day overlaps are allowed but reported via `has_overlap`.
    """
    classroom = await classroom_service.get_teacher_class(db, class_id, current_user.id)
    if not classroom:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class not found",
        )

    schedule, has_overlap = await classroom_service.create_schedule(db, classroom, schedule_data)
    return ScheduleCreatedResponse(
        schedule=ScheduleResponse.model_validate(schedule),
        has_overlap=has_overlap,
    )


@router.get("/classes/{class_id}/schedules", response_model=list[ScheduleResponse])
async def list_schedules(
    class_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
):
    """List weekly slots of a class."""
    classroom = await classroom_service.get_class_by_id(db, class_id)
    if not classroom or not await classroom_service.can_view_class(db, current_user, classroom):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class not found",
        )
    return await classroom_service.get_class_schedules(db, class_id)


@router.delete("/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(
    schedule_id: UUID,
    db: DbSession,
    current_user: Teacher,
):
    """Delete a weekly slot of one of the teacher's classes."""
    schedule = await classroom_service.get_teacher_schedule(db, schedule_id, current_user.id)
    if not schedule:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Schedule not found",
        )
    await classroom_service.delete_schedule(db, schedule)

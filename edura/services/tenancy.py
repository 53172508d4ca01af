"""Tenant scoping helpers: a manager sees only their own learning center."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edura.core.permissions import Role
from edura.models.classroom import Classroom
from edura.models.user import User


async def get_manager_member_ids(
    db: AsyncSession, manager_id: UUID, role: Role
) -> list[UUID]:
    """IDs of the manager's users with the given role."""
    result = await db.execute(
        select(User.id).where(User.role == role, User.manager_id == manager_id)
    )
    return list(result.scalars().all())


async def get_manager_class_ids(db: AsyncSession, manager_id: UUID) -> list[UUID]:
    """IDs of classes taught by the manager's teachers."""
    result = await db.execute(
        select(Classroom.id)
        .join(User, User.id == Classroom.teacher_id)
        .where(User.role == Role.TEACHER, User.manager_id == manager_id)
    )
    return list(result.scalars().all())


async def user_belongs_to_manager(
    db: AsyncSession, user_id: UUID, manager_id: UUID, role: Role
) -> bool:
    result = await db.execute(
        select(User.id).where(
            User.id == user_id,
            User.role == role,
            User.manager_id == manager_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def class_belongs_to_manager(
    db: AsyncSession, class_id: UUID, manager_id: UUID
) -> bool:
    """Check the class is taught by one of the manager's teachers."""
    result = await db.execute(select(Classroom.teacher_id).where(Classroom.id == class_id))
    teacher_id = result.scalar_one_or_none()
    if teacher_id is None:
        return False
    return await user_belongs_to_manager(db, teacher_id, manager_id, Role.TEACHER)

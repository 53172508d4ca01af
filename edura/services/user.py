"""User service."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from edura.core.permissions import Role
from edura.core.security import generate_password, get_password_hash
from edura.models.user import User
from edura.schemas.user import UserCreate, UserUpdateMe


async def get_user_by_id(db: AsyncSession, user_id: UUID) -> User | None:
    """Get user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Get user by email."""
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_users(
    db: AsyncSession,
    *,
    manager_id: UUID,
    role: Role | None = None,
    is_active: bool | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[User], int]:
    """Get the members of a manager's learning center."""
    query = select(User).where(User.manager_id == manager_id, User.id != manager_id)

    if role is not None:
        query = query.where(User.role == role)

    if is_active is not None:
        query = query.where(User.is_active == is_active)

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = query.order_by(User.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    users = list(result.scalars().all())

    return users, total


async def create_member(
    db: AsyncSession,
    manager: User,
    user_data: UserCreate,
) -> tuple[User, str]:
    """Create a teacher/student in the manager's center with a generated password."""
    password = generate_password()
    user = User(
        email=user_data.email.lower(),
        name=user_data.name,
        password_hash=get_password_hash(password),
        role=user_data.role,
        manager_id=manager.id,
        generated_password=password,
        has_changed_password=False,
        grade=user_data.grade,
        school_name=user_data.school_name,
        parent_email=user_data.parent_email,
        parent_phone=user_data.parent_phone,
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)

    return user, password


async def create_manager(
    db: AsyncSession,
    email: str,
    name: str,
    password: str,
) -> User:
    """Create a manager; a manager is its own tenant."""
    user = User(
        email=email.lower(),
        name=name,
        password_hash=get_password_hash(password),
        role=Role.MANAGER,
        has_changed_password=True,
    )
    db.add(user)
    await db.flush()
    user.manager_id = user.id
    await db.commit()
    await db.refresh(user)
    return user


async def update_me(
    db: AsyncSession,
    user: User,
    user_data: UserUpdateMe,
) -> User:
    """Update own profile."""
    update_data = user_data.model_dump(exclude_unset=True)

    for field, value in update_data.items():
        setattr(user, field, value)

    await db.commit()
    await db.refresh(user)

    return user


async def change_password(
    db: AsyncSession,
    user: User,
    new_password: str,
) -> User:
    """Change user's password and drop the stored initial one."""
    user.password_hash = get_password_hash(new_password)
    user.generated_password = None
    user.has_changed_password = True
    await db.commit()
    await db.refresh(user)
    return user

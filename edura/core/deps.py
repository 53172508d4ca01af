"""Dependencies for FastAPI routes."""

import secrets
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edura.core.clock import Clock, get_clock
from edura.core.config import settings
from edura.core.database import get_db
from edura.core.permissions import Role
from edura.core.security import decode_access_token
from edura.core.storage import BlobStorage, get_storage
from edura.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login/form")


class CronUnauthorized(Exception):
    """Raised when a scheduled-job call lacks the shared secret."""


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get current authenticated user from JWT token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(token)
    if payload is None or payload.get("type") != "access":
        raise credentials_exception

    user_id: str | None = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    try:
        uuid_id = UUID(user_id)
    except ValueError:
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == uuid_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user",
        )

    return user


def require_roles(*roles: Role):
    """Dependency factory to check if user has one of the specified roles."""

    async def role_checker(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user

    return role_checker


async def verify_cron_secret(
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Only enforced in production: require `Authorization: Bearer <CRON_SECRET>`."""
    if not settings.is_production:
        return
    expected = f"Bearer {settings.CRON_SECRET}"
    if (
        not settings.CRON_SECRET
        or authorization is None
        or not secrets.compare_digest(authorization, expected)
    ):
        raise CronUnauthorized()


# Common dependency aliases
DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
Manager = Annotated[User, Depends(require_roles(Role.MANAGER))]
Teacher = Annotated[User, Depends(require_roles(Role.TEACHER))]
Student = Annotated[User, Depends(require_roles(Role.STUDENT))]
CurrentClock = Annotated[Clock, Depends(get_clock)]
Storage = Annotated[BlobStorage, Depends(get_storage)]

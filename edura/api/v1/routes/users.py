"""User routes."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from edura.core.deps import CurrentUser, DbSession, Manager
from edura.core.permissions import Role, can_create_role
from edura.core.security import verify_password
from edura.schemas.user import (
    PasswordChange,
    UserCreate,
    UserCreatedResponse,
    UserListResponse,
    UserResponse,
    UserUpdateMe,
)
from edura.services import user as user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=UserListResponse)
async def list_users(
    db: DbSession,
    current_user: Manager,
    role: Role | None = Query(None, description="Filter by role"),
    is_active: bool | None = Query(None, description="Filter by active status"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(20, ge=1, le=100, description="Max number of records"),
) -> UserListResponse:
    """List teachers and students of the manager's learning center."""
    users, total = await user_service.get_users(
        db,
        manager_id=current_user.id,
        role=role,
        is_active=is_active,
        skip=skip,
        limit=limit,
    )

    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.post("", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: DbSession,
    current_user: Manager,
) -> UserCreatedResponse:
    """
    Create a teacher or student account.

    The account joins the manager's learning center and gets a generated
    password, returned once in the response.
    """
    if not can_create_role(current_user.role, user_data.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You don't have permission to create users with role '{user_data.role.value}'",
        )

    existing_user = await user_service.get_user_by_email(db, user_data.email)
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already exists",
        )

    user, password = await user_service.create_member(db, current_user, user_data)
    return UserCreatedResponse(
        **UserResponse.model_validate(user).model_dump(),
        generated_password=password,
    )


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUser) -> UserResponse:
    """Get current user's profile."""
    return UserResponse.model_validate(current_user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    user_data: UserUpdateMe,
    db: DbSession,
    current_user: CurrentUser,
) -> UserResponse:
    """Update current user's profile."""
    user = await user_service.update_me(db, current_user, user_data)
    return UserResponse.model_validate(user)


@router.post("/me/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_my_password(
    password_data: PasswordChange,
    db: DbSession,
    current_user: CurrentUser,
) -> None:
    """Change current user's password."""
    if not verify_password(password_data.current_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    await user_service.change_password(db, current_user, password_data.new_password)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    db: DbSession,
    current_user: Manager,
) -> UserResponse:
    """Get a member of the manager's learning center."""
    user = await user_service.get_user_by_id(db, user_id)
    if not user or user.manager_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return UserResponse.model_validate(user)

"""User schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from edura.core.permissions import Role


class UserCreate(BaseModel):
    """Schema for a manager creating a teacher or student account."""

    email: EmailStr
    name: str = Field(..., min_length=2, max_length=200)
    role: Role
    grade: str | None = Field(None, max_length=50)
    school_name: str | None = Field(None, max_length=200)
    parent_email: EmailStr | None = None
    parent_phone: str | None = Field(None, max_length=50)


class UserUpdateMe(BaseModel):
    """Schema for user updating their own profile."""

    name: str | None = Field(None, min_length=2, max_length=200)
    school_name: str | None = Field(None, max_length=200)
    parent_email: EmailStr | None = None
    parent_phone: str | None = Field(None, max_length=50)


class PasswordChange(BaseModel):
    """Schema for changing password."""

    current_password: str = Field(..., min_length=6)
    new_password: str = Field(..., min_length=6)


class UserResponse(BaseModel):
    """User response schema."""

    id: UUID
    email: str
    name: str
    role: Role
    manager_id: UUID | None
    has_changed_password: bool
    grade: str | None
    school_name: str | None
    parent_email: str | None
    parent_phone: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserCreatedResponse(UserResponse):
    """Returned once on creation so the manager can hand out the password."""

    generated_password: str


class UserListResponse(BaseModel):
    """Paginated list of users."""

    items: list[UserResponse]
    total: int
    skip: int
    limit: int

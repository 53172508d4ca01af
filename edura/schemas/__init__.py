"""Pydantic schemas."""

from edura.schemas.auth import (
    Token,
    LoginRequest,
    RefreshRequest,
)
from edura.schemas.user import (
    UserCreate,
    UserUpdateMe,
    UserResponse,
    UserCreatedResponse,
    UserListResponse,
    PasswordChange,
)

__all__ = [
    # Auth
    "Token",
    "LoginRequest",
    "RefreshRequest",
    # User
    "UserCreate",
    "UserUpdateMe",
    "UserResponse",
    "UserCreatedResponse",
    "UserListResponse",
    "PasswordChange",
]

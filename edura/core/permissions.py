"""User roles and which roles may create which."""

from enum import Enum


class Role(str, Enum):
    """User roles in the system."""

    MANAGER = "manager"  # Runs a learning center (tenant owner)
    TEACHER = "teacher"  # Owns classes inside a learning center
    STUDENT = "student"  # Enrolls in classes


# Which roles can create which other roles
ROLE_HIERARCHY = {
    Role.MANAGER: [Role.TEACHER, Role.STUDENT],
    Role.TEACHER: [],
    Role.STUDENT: [],
}


def can_create_role(creator_role: Role, target_role: Role) -> bool:
    """Check if a role can create another role."""
    return target_role in ROLE_HIERARCHY.get(creator_role, [])

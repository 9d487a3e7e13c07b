"""
Role definitions for RBAC system
"""
from enum import Enum


class Role(str, Enum):
    """User roles in the system"""
    GUEST = "guest"
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"

    def __str__(self):
        return self.value

    @classmethod
    def from_string(cls, role_str: str | None) -> 'Role':
        """Convert string to Role enum"""
        if isinstance(role_str, cls):
            return role_str
        role_str = (role_str or '').lower().strip()
        for role in cls:
            if role.value == role_str:
                return role
        # Unknown roles get the least privilege
        return cls.GUEST

    @classmethod
    def parse(cls, role_str: str | None) -> 'Role':
        """Convert string to Role enum, raising ValueError for unknown names"""
        if not cls.is_valid(role_str):
            raise ValueError(f"Unknown role: {role_str!r}")
        return cls.from_string(role_str)

    @classmethod
    def is_valid(cls, role_str: str) -> bool:
        """Check if a string is a valid role"""
        role_str = (role_str or '').lower().strip()
        return role_str in [role.value for role in cls]

    @classmethod
    def get_all(cls) -> list[str]:
        """Get all role values as strings"""
        return [role.value for role in cls]

    @classmethod
    def account_roles(cls) -> list[str]:
        """Roles that can be stored on a user account"""
        return [role.value for role in cls if role is not cls.GUEST]

"""
Permission definitions for RBAC system

Each role has specific permissions that determine what it may create and which
dashboards it sees. Per-entity view/edit/moderate decisions live in
app.rbac.visibility, not here.
"""
from enum import Enum
from typing import Set
from app.rbac.roles import Role


class Permissions(str, Enum):
    """Available permissions in the system"""
    # Browsing
    VIEW_PUBLISHED_CONTENT = "view_published_content"  # Published + guest viewable (everyone)
    VIEW_MEMBER_CONTENT = "view_member_content"  # Published content for logged-in users

    # Creation (content is always created pending)
    CREATE_COURSE = "create_course"
    CREATE_LESSON = "create_lesson"
    CREATE_DOCUMENTATION = "create_documentation"
    CREATE_FORUM_POST = "create_forum_post"
    CREATE_COMMENT = "create_comment"
    CREATE_CONFERENCE = "create_conference"

    # Moderation (admin only)
    MODERATE_CONTENT = "moderate_content"

    # Dashboards
    VIEW_STUDENT_DASHBOARD = "view_student_dashboard"
    VIEW_TEACHER_DASHBOARD = "view_teacher_dashboard"
    VIEW_ADMIN_DASHBOARD = "view_admin_dashboard"

    # User management
    VIEW_MY_PROFILE = "view_my_profile"
    MANAGE_USER_ROLES = "manage_user_roles"
    BLOCK_USERS = "block_users"

    def __str__(self):
        return self.value


_TEACHER_PERMISSIONS = {
    Permissions.VIEW_PUBLISHED_CONTENT,
    Permissions.VIEW_MEMBER_CONTENT,
    Permissions.CREATE_COURSE,
    Permissions.CREATE_LESSON,
    Permissions.CREATE_DOCUMENTATION,
    Permissions.CREATE_FORUM_POST,
    Permissions.CREATE_COMMENT,
    Permissions.CREATE_CONFERENCE,
    Permissions.VIEW_TEACHER_DASHBOARD,
    Permissions.VIEW_MY_PROFILE,
}

# Define permissions for each role
ROLE_PERMISSIONS: dict[Role, Set[Permissions]] = {
    Role.GUEST: {
        Permissions.VIEW_PUBLISHED_CONTENT,
    },

    Role.STUDENT: {
        Permissions.VIEW_PUBLISHED_CONTENT,
        Permissions.VIEW_MEMBER_CONTENT,
        Permissions.CREATE_FORUM_POST,
        Permissions.CREATE_COMMENT,
        Permissions.VIEW_STUDENT_DASHBOARD,
        Permissions.VIEW_MY_PROFILE,
    },

    Role.TEACHER: set(_TEACHER_PERMISSIONS),

    Role.ADMIN: _TEACHER_PERMISSIONS | {
        Permissions.MODERATE_CONTENT,
        Permissions.VIEW_ADMIN_DASHBOARD,
        Permissions.MANAGE_USER_ROLES,
        Permissions.BLOCK_USERS,
    },
}

# Which permission allows creating each kind of content
CREATE_PERMISSION_BY_KIND: dict[str, Permissions] = {
    'course': Permissions.CREATE_COURSE,
    'lesson': Permissions.CREATE_LESSON,
    'documentation': Permissions.CREATE_DOCUMENTATION,
    'forum_post': Permissions.CREATE_FORUM_POST,
    'comment': Permissions.CREATE_COMMENT,
    'conference': Permissions.CREATE_CONFERENCE,
}


def get_permissions_for_role(role: Role | str) -> Set[Permissions]:
    """
    Get all permissions for a given role.

    Args:
        role: Role enum or role string

    Returns:
        Set of permissions for the role
    """
    if isinstance(role, str):
        role = Role.from_string(role)

    return ROLE_PERMISSIONS.get(role, set())


def has_permission(role: Role | str, permission: Permissions | str) -> bool:
    """
    Check if a role has a specific permission.

    Args:
        role: Role enum or role string
        permission: Permission enum or permission string

    Returns:
        True if role has the permission, False otherwise
    """
    if isinstance(role, str):
        role = Role.from_string(role)

    if isinstance(permission, str):
        try:
            permission = Permissions(permission)
        except ValueError:
            return False

    role_perms = get_permissions_for_role(role)
    return permission in role_perms


def can_create(role: Role | str, kind) -> bool:
    """Check if a role may create content of the given kind"""
    permission = CREATE_PERMISSION_BY_KIND.get(str(getattr(kind, 'value', kind)))
    if permission is None:
        return False
    return has_permission(role, permission)


def get_ui_features_for_role(role: Role | str) -> dict[str, bool]:
    """
    Get UI features visibility for a role.
    This is used to determine what UI elements to show/hide.
    """
    if isinstance(role, str):
        role = Role.from_string(role)

    perms = get_permissions_for_role(role)

    return {
        'create_course': Permissions.CREATE_COURSE in perms,
        'create_documentation': Permissions.CREATE_DOCUMENTATION in perms,
        'create_forum_post': Permissions.CREATE_FORUM_POST in perms,
        'create_conference': Permissions.CREATE_CONFERENCE in perms,
        'moderate_content': Permissions.MODERATE_CONTENT in perms,
        'student_dashboard': Permissions.VIEW_STUDENT_DASHBOARD in perms,
        'teacher_dashboard': Permissions.VIEW_TEACHER_DASHBOARD in perms,
        'admin_dashboard': Permissions.VIEW_ADMIN_DASHBOARD in perms,
        'manage_users': Permissions.MANAGE_USER_ROLES in perms,
    }

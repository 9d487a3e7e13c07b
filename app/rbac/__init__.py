"""
RBAC (Role-Based Access Control) module for the education portal

This module provides role-based access control functionality with support for:
- Guest: Can view published content that is marked guest viewable
- Student: Can view published content and post in the forums
- Teacher: Can create courses, documentation and conferences and edit their own
- Admin: Can see, edit and moderate everything

Per-entity decisions (view/edit/moderate) live in app.rbac.visibility.
"""

from app.rbac.roles import Role
from app.rbac.viewer import Viewer, ANONYMOUS, MalformedViewerError, has_role
from app.rbac.permissions import Permissions, get_permissions_for_role, has_permission, can_create
from app.rbac.visibility import (
    AccessDecision,
    ViewGate,
    can_view,
    can_edit,
    can_moderate,
    resolve,
    gate_outcome,
    describe_denial
)
from app.rbac.decorators import (
    login_required,
    role_required,
    permission_required,
    student_only,
    teacher_only,
    admin_only
)
from app.rbac.utils import get_current_viewer

__all__ = [
    'Role',
    'Viewer',
    'ANONYMOUS',
    'MalformedViewerError',
    'has_role',
    'Permissions',
    'get_permissions_for_role',
    'has_permission',
    'can_create',
    'AccessDecision',
    'ViewGate',
    'can_view',
    'can_edit',
    'can_moderate',
    'resolve',
    'gate_outcome',
    'describe_denial',
    'login_required',
    'role_required',
    'permission_required',
    'student_only',
    'teacher_only',
    'admin_only',
    'get_current_viewer',
]

"""
RBAC decorators for route protection
"""
from functools import wraps
from flask import jsonify
import logging

from app.rbac.roles import Role
from app.rbac.permissions import Permissions, has_permission
from app.rbac.utils import get_current_viewer
from app.rbac.viewer import has_role

logger = logging.getLogger(__name__)


def login_required(f):
    """Decorator to require login for routes."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not get_current_viewer().is_authenticated:
            logger.info("Unauthorized access attempt - login required")
            return jsonify({'error': 'Login required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def role_required(*allowed_roles: Role | str):
    """
    Decorator to require one of an explicit set of roles.

    Roles are not hierarchical, so admin routes that teachers may also use
    must list both.

    Example:
        @role_required(Role.ADMIN, Role.TEACHER)
        def manage_courses():
            ...
    """
    allowed = {Role.parse(r) for r in allowed_roles}
    label = ' or '.join(sorted(r.value for r in allowed))

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            viewer = get_current_viewer()
            if not viewer.is_authenticated:
                logger.info("Unauthorized access attempt - login required")
                return jsonify({'error': 'Login required'}), 401

            if not has_role(viewer, allowed):
                logger.info(f"User {viewer.id} with role {viewer.role} attempted to access {label}-only route")
                return jsonify({'error': f'{label.capitalize()} access required'}), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def permission_required(permission: Permissions | str):
    """
    Decorator to require a specific permission for routes.

    Example:
        @permission_required(Permissions.MANAGE_USER_ROLES)
        def change_role():
            ...
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            viewer = get_current_viewer()
            if not viewer.is_authenticated:
                logger.info("Unauthorized access attempt - login required")
                return jsonify({'error': 'Login required'}), 401

            if not has_permission(viewer.role, permission):
                logger.info(f"User {viewer.id} with role {viewer.role} attempted to access route requiring {permission}")
                return jsonify({'error': 'Insufficient permissions'}), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def student_only(f):
    """Decorator to allow only students to access a route."""
    return role_required(Role.STUDENT)(f)


def teacher_only(f):
    """Decorator to allow only teachers to access a route."""
    return role_required(Role.TEACHER)(f)


def admin_only(f):
    """Decorator to allow only admins to access a route."""
    return role_required(Role.ADMIN)(f)

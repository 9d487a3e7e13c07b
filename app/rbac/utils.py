"""
RBAC utility functions for checking permissions and roles

get_current_viewer() is the only place that reads the session; everything
downstream receives the Viewer explicitly.
"""
import logging
from flask import session

from app.rbac.roles import Role
from app.rbac.viewer import Viewer
from app.rbac.permissions import get_ui_features_for_role

logger = logging.getLogger(__name__)


def get_current_viewer() -> Viewer:
    """
    Build the Viewer for the current request from session state.

    Called on every check; the result is never cached.
    """
    user_id = session.get('user_id')
    if user_id is None:
        return Viewer.guest()

    role = Role.from_string(session.get('role'))
    if role is Role.GUEST:
        logger.warning(f"User {user_id} has unknown role {session.get('role')!r}, treating as guest")
        return Viewer.guest()

    return Viewer.authenticated(user_id, role)


def get_ui_features() -> dict[str, bool]:
    """
    Get UI features visibility for the current user.
    Returned by /auth/me so clients can show or hide UI elements.
    """
    return get_ui_features_for_role(get_current_viewer().role)

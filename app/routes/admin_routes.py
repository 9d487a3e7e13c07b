"""
Admin routes for user management
"""
from flask import Blueprint, request, jsonify
import logging

from app.models import UserModel
from app.models.database_models import User as DBUser
from app.rbac import Role, Permissions, admin_only, permission_required, get_current_viewer
from app.utils.db import get_db

logger = logging.getLogger(__name__)
bp = Blueprint('admin', __name__)


@bp.route('/users', methods=['GET'])
@admin_only
def list_users():
    """List users, optionally filtered by role"""
    try:
        db = get_db()
        role_filter = request.args.get('role', 'all')
        query = db.query(DBUser)
        if role_filter != 'all':
            query = query.filter(DBUser.role == role_filter)
        users = query.order_by(DBUser.id).all()
        return jsonify({
            'success': True,
            'users': [UserModel._model_to_dict(user) for user in users],
            'total': len(users)
        })
    except Exception as e:
        logger.error(f"Error listing users: {str(e)}", exc_info=True)
        return jsonify({'error': 'Failed to list users'}), 500


@bp.route('/users/<int:user_id>/role', methods=['PUT'])
@permission_required(Permissions.MANAGE_USER_ROLES)
def update_user_role(user_id):
    """Change a user's role"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    new_role = (data.get('role') or '').lower().strip()
    if new_role not in Role.account_roles():
        return jsonify({'error': f"Invalid role. Must be one of: {', '.join(Role.account_roles())}"}), 400

    viewer = get_current_viewer()
    if str(user_id) == str(viewer.id) and new_role != Role.ADMIN.value:
        return jsonify({'error': 'Administrators cannot remove their own admin role'}), 400

    try:
        if not UserModel(user_id).update_role(new_role):
            return jsonify({'error': 'User not found'}), 404
    except Exception as e:
        logger.error(f"Error updating role for user {user_id}: {str(e)}", exc_info=True)
        return jsonify({'error': 'Failed to update role'}), 500

    logger.info(f"Admin {viewer.id} changed role of user {user_id} to {new_role}")
    return jsonify({'success': True, 'user': UserModel.get_user_by_id(user_id)})


@bp.route('/users/<int:user_id>/block', methods=['PUT'])
@permission_required(Permissions.BLOCK_USERS)
def set_user_blocked(user_id):
    """Block or unblock a user; a blocked user's live sessions end on their next request"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get('is_blocked'), bool):
        return jsonify({'error': "'is_blocked' must be true or false"}), 400
    is_blocked = data['is_blocked']

    viewer = get_current_viewer()
    if str(user_id) == str(viewer.id) and is_blocked:
        return jsonify({'error': 'Administrators cannot block themselves'}), 400

    try:
        if not UserModel(user_id).set_blocked(is_blocked):
            return jsonify({'error': 'User not found'}), 404
    except Exception as e:
        logger.error(f"Error updating blocked flag for user {user_id}: {str(e)}", exc_info=True)
        return jsonify({'error': 'Failed to update user'}), 500

    logger.info(f"Admin {viewer.id} {'blocked' if is_blocked else 'unblocked'} user {user_id}")
    return jsonify({'success': True, 'user': UserModel.get_user_by_id(user_id)})

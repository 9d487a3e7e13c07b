from flask import Blueprint, request, session, jsonify
import logging

from app.models import UserModel
from app.rbac import login_required, get_current_viewer
from app.rbac.utils import get_ui_features

logger = logging.getLogger(__name__)
bp = Blueprint('auth', __name__)


@bp.before_app_request
def refresh_session_role():
    """Re-read the role on every request so role changes apply immediately"""
    user_id = session.get('user_id')
    if user_id is None:
        return
    user = UserModel.get_user_by_id(user_id)
    if user is None or user.get('is_blocked'):
        logger.info(f"Clearing session for missing or blocked user {user_id}")
        session.clear()
        return
    if session.get('role') != user['role']:
        session['role'] = user['role']


@bp.route('/register', methods=['POST'])
def register():
    """Create a student account; other roles are granted by an admin"""
    data = request.get_json(silent=True) or {}
    required = ('name', 'last_name', 'email', 'password')
    missing = [field for field in required if not data.get(field)]
    if missing:
        return jsonify({'error': f"Missing fields: {', '.join(missing)}"}), 400

    try:
        user_id = UserModel.create_user(
            name=data['name'],
            last_name=data['last_name'],
            email=data['email'],
            password=data['password'],
            role='student'
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Registration error: {str(e)}", exc_info=True)
        return jsonify({'error': 'Registration failed'}), 500

    logger.info(f"New student account registered: {user_id}")
    return jsonify({'success': True, 'user': UserModel.get_user_by_id(user_id)}), 201


@bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    if not email or not password:
        return jsonify({'error': 'Email and password are required'}), 400

    try:
        user = UserModel.authenticate(email, password)
    except Exception as e:
        logger.error(f"Login error: {str(e)}", exc_info=True)
        return jsonify({'error': 'Login failed'}), 500

    if not user:
        logger.info(f"Failed login attempt for {email}")
        return jsonify({'error': 'Invalid email or password'}), 401

    session.clear()
    session.permanent = True
    session['user_id'] = user['id']
    session['role'] = user['role']
    logger.info(f"User {user['id']} logged in as {user['role']}")
    return jsonify({'success': True, 'user': user})


@bp.route('/logout', methods=['POST'])
def logout():
    user_id = session.get('user_id')
    session.clear()
    if user_id is not None:
        logger.info(f"User {user_id} logged out")
    return jsonify({'success': True})


@bp.route('/me', methods=['GET'])
@login_required
def me():
    viewer = get_current_viewer()
    return jsonify({
        'success': True,
        'user': UserModel.get_user_by_id(viewer.id),
        'role': viewer.role.value,
        'features': get_ui_features()
    })

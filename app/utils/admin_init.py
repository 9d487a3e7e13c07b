"""
Admin initialization utility
Creates the configured admin account on server startup if it doesn't exist
"""
import logging
from flask import current_app

from app.models import UserModel
from app.utils.db import get_db
from app.models.database_models import User as DBUser

logger = logging.getLogger(__name__)


def create_default_admin():
    """
    Create the admin account named by ADMIN_EMAIL / ADMIN_PASSWORD.

    Does nothing when either setting is missing. An existing user with that
    email is promoted to admin rather than duplicated. Returns the admin's id,
    or None when no admin was configured.
    """
    email = current_app.config.get('ADMIN_EMAIL')
    password = current_app.config.get('ADMIN_PASSWORD')
    if not email or not password:
        logger.debug("ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin creation")
        return None

    db = get_db()
    existing_user = db.query(DBUser).filter(DBUser.email == email.strip().lower()).first()
    if existing_user:
        if existing_user.role != 'admin':
            UserModel(existing_user.id).update_role('admin')
            logger.info(f"Promoted existing user {existing_user.id} to admin")
        else:
            logger.info(f"Admin account already exists: {email}")
        return existing_user.id

    admin_id = UserModel.create_user(
        name='Admin',
        last_name='User',
        email=email,
        password=password,
        role='admin'
    )
    logger.info(f"Default admin account created successfully (ID: {admin_id})")
    return admin_id

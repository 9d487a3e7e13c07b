# app/__init__.py
from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
import logging
import os

from app.utils.db import init_db, close_db
from app.utils.logger import setup_logger
from app.config import Config

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    app = Flask(__name__,
                template_folder=os.path.join(base_dir, 'templates'),
                static_folder=os.path.join(base_dir, 'static'))

    # Load configuration
    app.config.from_object(config_class)

    setup_logger('app', app.config.get('LOG_DIR'), app.config.get('LOG_LEVEL', 'INFO'))

    # Frontend origins calling the JSON API with the session cookie
    cors_resource = {
        "origins": app.config['CORS_ORIGINS'],
        "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        "allow_headers": ["Content-Type", "Authorization", "X-Requested-With"],
        "supports_credentials": True
    }
    CORS(app,
         resources={
             r"/api/*": cors_resource,
             r"/auth/*": cors_resource,
             r"/dashboard/*": cors_resource,
         },
         supports_credentials=True)

    # SQLite files live under instance/ by default
    database_path = app.config.get('DATABASE')
    if database_path:
        os.makedirs(os.path.dirname(database_path), exist_ok=True)

    # Register database cleanup function
    app.teardown_appcontext(close_db)

    # Initialize database
    with app.app_context():
        init_db(app)
        from app.utils.admin_init import create_default_admin
        create_default_admin()

    # Register blueprints (import here to avoid circular imports)
    from app.routes.auth import bp as auth_bp
    from app.routes.content_routes import bp as content_bp
    from app.routes.dashboard_routes import bp as dashboard_bp
    from app.routes.admin_routes import bp as admin_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(content_bp, url_prefix='/api')
    app.register_blueprint(dashboard_bp, url_prefix='/dashboard')
    app.register_blueprint(admin_bp, url_prefix='/admin')

    _register_error_handlers(app)

    return app


def _register_error_handlers(app):
    from app.services.content import ContentError, MalformedEntityError

    @app.errorhandler(ContentError)
    def handle_content_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(MalformedEntityError)
    def handle_malformed_entity(error):
        logger.error(f"Malformed content record: {str(error)}", exc_info=True)
        return jsonify({'error': 'Content record is invalid'}), 500

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.error(f"Unhandled error: {str(error)}", exc_info=True)
        return jsonify({'error': 'Internal server error'}), 500

import logging
from flask import current_app, g
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)


def _session_factory() -> sessionmaker:
    return current_app.extensions['db_sessionmaker']


def get_db() -> Session:
    """Get the database session for the current app context."""
    if 'db' not in g:
        try:
            g.db = _session_factory()()
        except Exception as e:
            logger.error(f"Database connection error: {str(e)}")
            raise
    return g.db


def close_db(e=None):
    """Close database session."""
    db = g.pop('db', None)
    if db is not None:
        try:
            if e is not None:
                db.rollback()
            db.close()
        except Exception as exc:
            logger.error(f"Error closing database: {str(exc)}")


def init_db(app):
    """Create the engine and session factory, then the schema."""
    from app.models.database_models import Base

    try:
        engine = create_engine(
            app.config['SQLALCHEMY_DATABASE_URI'],
            **app.config.get('SQLALCHEMY_ENGINE_OPTIONS', {})
        )
        app.extensions['db_engine'] = engine
        app.extensions['db_sessionmaker'] = sessionmaker(bind=engine, expire_on_commit=False)

        Base.metadata.create_all(engine)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization error: {str(e)}")
        raise

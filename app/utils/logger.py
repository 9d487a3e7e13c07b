import logging
from logging.handlers import RotatingFileHandler
import os


def setup_logger(name, log_dir='logs', level=logging.INFO):
    """Configure and return a logger instance"""
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Re-running the app factory (tests) must not stack handlers
    if logger.handlers:
        return logger

    if log_dir:
        # Create logs directory if it doesn't exist
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = RotatingFileHandler(os.path.join(log_dir, 'app.log'),
                                           maxBytes=1024 * 1024, backupCount=10)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        logger.addHandler(file_handler)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(
        '%(levelname)s: %(message)s'
    ))
    logger.addHandler(console_handler)

    return logger

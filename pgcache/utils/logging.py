import os
import sys

from loguru import logger
from pgcache.core.config import settings

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}"

# Base directory for logs
LOG_DIR = settings.LOG_DIR
os.makedirs(LOG_DIR, exist_ok=True)

# Replace loguru's default stderr sink so LOG_LEVEL applies to the console too
logger.remove()
logger.add(sys.stderr, level=settings.LOG_LEVEL, format=LOG_FORMAT)

# Main app log
APP_LOG_PATH = os.path.join(LOG_DIR, "app.log")
logger.add(
    APP_LOG_PATH,
    rotation="10 MB",
    level=settings.LOG_LEVEL,
    enqueue=True,
    backtrace=True,
    diagnose=False,
    format=LOG_FORMAT,
)

# Store errors (unavailable / failed statements)
DB_LOG_PATH = os.path.join(LOG_DIR, "db_errors.log")
logger.add(
    DB_LOG_PATH,
    rotation="10 MB",
    level="WARNING",
    enqueue=True,
    backtrace=True,
    diagnose=False,
    format=LOG_FORMAT,
)


def get_logger():
    """Return the global logger."""
    return logger

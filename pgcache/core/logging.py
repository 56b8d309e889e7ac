import logging
import os

from pgcache.core.config import settings

FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_early_logging():
    """Errors raised before loguru sinks exist (bad config, import failures)."""
    os.makedirs(settings.LOG_DIR, exist_ok=True)
    early_logger = logging.getLogger("startup")
    if early_logger.handlers:
        return early_logger
    early_logger.setLevel(logging.ERROR)
    fh = logging.FileHandler(os.path.join(settings.LOG_DIR, "startup.log"))
    fh.setFormatter(logging.Formatter(FORMAT))
    early_logger.addHandler(fh)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(FORMAT))
    early_logger.addHandler(console_handler)
    return early_logger

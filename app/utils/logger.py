import logging
from app.config import settings

# third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("apscheduler", "aiosqlite", "sqlalchemy.engine")

def setup_logger(name: str = "dearly"):
    """Configure the application logger."""

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    for noisy in QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        f"%(asctime)s [{settings.environment}] %(name)s %(levelname)s: %(message)s"
    ))
    logger.addHandler(handler)
    logger.propagate = False

    return logger

def mask_token(token: str) -> str:
    """Only the first 8 characters of a token are ever logged."""
    if not token:
        return "<none>"
    return f"{token[:8]}..."

logger = setup_logger()

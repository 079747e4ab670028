import logging
import sys

from config.settings import LOG_LEVEL

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _resolve_level() -> int:
    if LOG_LEVEL:
        level = logging.getLevelName(LOG_LEVEL)
        return level if isinstance(level, int) else logging.INFO
    # Same level as uvicorn so app and server output line up
    return logging.getLogger("uvicorn").level or logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Module logger writing to stdout. Never pass tokens or secrets in messages."""
    logger = logging.getLogger(name)

    # uvicorn installs its own handlers; add ours once per logger
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    logger.setLevel(_resolve_level())
    logger.propagate = False

    return logger

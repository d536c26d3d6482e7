"""
Cafe Engine — Logging setup
"""
import logging

from cafe_engine.core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] %(message)s"


def init_logging(level: str | None = None) -> logging.Logger:
    settings = get_settings()
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logging.getLogger("cafe_engine")

# backend/billboard_rental/core/log.py
import logging

from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Apply LOG_LEVEL to the package loggers once (uvicorn keeps its own handlers)."""
    global _configured
    if _configured:
        return
    lvl = (level or settings.LOG_LEVEL or "INFO").upper()
    logging.basicConfig(level=lvl, format=LOG_FORMAT)
    logging.getLogger("billboard_rental").setLevel(lvl)
    _configured = True

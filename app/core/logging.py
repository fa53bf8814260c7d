"""
Logging setup.

Modules obtain their logger with ``get_logger(__name__)``; ``setup_logging``
is called once from the application lifespan.
"""

import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_configured = False


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger with a single stdout handler."""
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel((level or settings.LOG_LEVEL).upper())

    # Kafka client logs are very chatty at INFO
    logging.getLogger("aiokafka").setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

# salonbook/utils/my_logging.py
"""Logging configuration shared by the API process and the Celery worker"""
import logging
import sys

from salonbook.config.settings import get_settings
from salonbook.core.middleware import CorrelationIdFilter

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"

# Libraries that log every statement or HTTP exchange at INFO
NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.orm",
    "httpx",
    "twilio.http_client",
    "uvicorn.access",
)


def setup_logging(verbose=True):
    """
    Configure root logging to stdout.

    Level comes from LOG_LEVEL; with verbose=False only warnings and above
    are shown and chatty third-party loggers are capped at ERROR.
    """
    settings = get_settings()

    if verbose:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    else:
        level = logging.WARNING

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[handler],
        force=True,
    )

    if not verbose:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.ERROR)

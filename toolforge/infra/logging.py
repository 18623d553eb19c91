"""JSON logging for the toolforge logger tree."""

import logging
import sys
from typing import Optional
from pythonjsonlogger import jsonlogger

from toolforge.infra.config import config

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# Libraries that are noisy below WARNING
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore", "openai")


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """Stamps every record with the service name and environment."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["service"] = "toolforge"
        log_record["env"] = config.APP_ENV


def setup_logging(level: Optional[int] = None) -> logging.Logger:
    """
    Attach a single JSON stdout handler to the ``toolforge`` logger.

    Module loggers (``toolforge.services.*`` and friends) inherit it.
    """
    if level is None:
        level = logging.DEBUG if config.DEBUG else logging.INFO

    logger = logging.getLogger("toolforge")
    logger.setLevel(level)
    logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ServiceJsonFormatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


app_logger = setup_logging()

import json
import logging
import sys
from typing import Optional

from libs.common.config import Settings, get_settings

# Attributes callers may attach with ``extra=`` that the JSON output keeps
CONTEXT_FIELDS = ("collection", "doc_id", "actor", "resource", "store_client")


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line for non-local environments.

    Every line carries the hangar and environment so that logs from several
    deployments can share a sink.
    """

    def __init__(self, hangar: str, environment: str):
        super().__init__()
        self.hangar = hangar
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "timestamp": self.formatTime(record, self.datefmt),
            "hangar": self.hangar,
            "environment": self.environment,
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = value

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record, default=str)


def build_formatter(settings: Settings) -> logging.Formatter:
    if settings.ENVIRONMENT == "local":
        return logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    return JsonFormatter(settings.HANGAR_NAME, settings.ENVIRONMENT)


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure the root logger from LOG_LEVEL and ENVIRONMENT.

    Called once by the host application at startup.
    """
    settings = settings or get_settings()
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(build_formatter(settings))

    # Remove existing handlers to avoid duplication
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    root_logger.addHandler(handler)

    # Client libraries are chatty at INFO
    for noisy in ("httpx", "httpcore", "google", "grpc"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger for a specific module.
    """
    return logging.getLogger(name)

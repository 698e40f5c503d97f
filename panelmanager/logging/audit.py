"""Structured JSON audit logging for PanelManager.

Each entry is one JSON line on stdout, plus AUDIT_LOG_FILE when set. The id of
the inbound request that produced an entry is attached so outbound panel calls
can be traced back to the operator action. Panel API keys and bearer tokens
are masked before anything is written; debug mode logs full request and
response bodies.
"""

import json
import logging
import re
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone

from panelmanager.config.settings import get_settings

LOGGER_NAME = "panelmanager.audit"
REDACTED = "[REDACTED]"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

SECRET_PATTERNS = [
    # Panel application / account API keys
    re.compile(r"\bptl[ac]_[A-Za-z0-9]+"),
    re.compile(r"(Bearer\s+)[A-Za-z0-9._\-]+", re.IGNORECASE),
]


def redact(text: str) -> str:
    for pattern in SECRET_PATTERNS:
        if pattern.groups:
            text = pattern.sub(lambda m: m.group(1) + REDACTED, text)
        else:
            text = pattern.sub(REDACTED, text)
    return text


class JSONFormatter(logging.Formatter):
    """One JSON object per record with credentials masked."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": request_id_var.get(""),
        }
        audit_data = getattr(record, "audit_data", None)
        if audit_data:
            entry.update(audit_data)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return redact(json.dumps(entry, default=str))


def _add_handler(logger: logging.Logger, handler: logging.Handler) -> None:
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)


def setup_logging() -> None:
    """Configure the audit logger from settings. Safe to call more than once."""
    settings = get_settings()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    _add_handler(logger, logging.StreamHandler(sys.stdout))
    if settings.audit_log_file:
        _add_handler(logger, logging.FileHandler(settings.audit_log_file, encoding="utf-8"))

    # uvicorn configures the root logger; keep entries single
    logger.propagate = False


def get_audit_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def generate_request_id() -> str:
    return uuid.uuid4().hex[:12]


class RequestTimer:
    """Measures wall time of an outbound call in milliseconds."""

    def __init__(self):
        self.started: float = 0
        self.elapsed_ms: float = 0

    def __enter__(self):
        self.started = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed_ms = round((time.perf_counter() - self.started) * 1000, 2)

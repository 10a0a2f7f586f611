from __future__ import annotations

import logging
import os
import sys
from typing import Any, Optional

import structlog

from mindcare.utils.config import Settings, get_settings

SENSITIVE_KEYS = frozenset({"password", "password_hash", "api_key", "gemini_api_key", "token", "secret", "salt"})
REDACTED = "***REDACTED***"


def sanitize_log_data(data: dict[str, Any]) -> dict[str, Any]:
    sanitized = {}
    for key, value in data.items():
        if key.lower() in SENSITIVE_KEYS:
            sanitized[key] = REDACTED
        elif isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value)
        else:
            sanitized[key] = value
    return sanitized


def redact_sensitive(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor: never let credentials or session tokens reach a log line."""
    return sanitize_log_data(event_dict)


def setup_logging(settings: Optional[Settings] = None, to_file: bool = True) -> None:
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if to_file:
        os.makedirs(os.path.dirname(settings.log_file) or ".", exist_ok=True)
        handlers.append(logging.FileHandler(settings.log_file, mode="a"))

    logging.basicConfig(format="%(message)s", level=level, handlers=handlers, force=True)

    renderer = (
        structlog.processors.JSONRenderer() if settings.log_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)

"""Centralized logging utilities for the site access guard.

This module provides:
- Logging configuration from GuardConfig
- Safe preview utilities for addresses and backend payloads
- Secret redaction (bearer tokens leak easily from HTTP client errors)
- Structured logging with automatic evaluation_id propagation
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from .config import GuardConfig, LogLevel

# Patterns for detecting secrets (common patterns to redact)
SECRET_PATTERNS = [
    r'(?i)(?:password|passwd|pwd|secret|token|key|api[_-]?key|auth[_-]?token)\s*[:=]\s*["\']?([^"\'\s]+)',
    r'(?i)(?:bearer|basic)\s+([a-zA-Z0-9+/=._-]+)',
    r'(?i)(?:access_token|client_secret)=([^&\s]+)',
    r'(?i)(?:-----BEGIN\s+(?:RSA\s+)?(?:PRIVATE\s+)?KEY-----).*?(?:-----END\s+(?:RSA\s+)?(?:PRIVATE\s+)?KEY-----)',
]

_RESERVED_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName", "evaluation_id",
}


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a safe, length-bounded, single-line preview of a value.

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A truncated string representation
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list, tuple, set)):
        try:
            s = json.dumps(list(value) if isinstance(value, set) else value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"

    return s


def redact_secrets(text: str, replacement: str = "[REDACTED]") -> str:
    """Redact secret patterns (tokens, passwords, keys) from text."""
    if not isinstance(text, str):
        return text

    result = text
    for pattern in SECRET_PATTERNS:
        result = re.sub(pattern, replacement, result, flags=re.IGNORECASE | re.DOTALL)

    return result


def safe_log_value(value: Any, limit: int = 240, redact: bool = True) -> str:
    """Preview plus optional redaction. Use for anything a backend returned."""
    preview = safe_preview(value, limit=limit)
    if redact:
        preview = redact_secrets(preview)
    return preview


class EvaluationFormatter(logging.Formatter):
    """Formatter that includes evaluation_id and emits JSON or plain text.

    Extra fields passed via ``extra=`` are previewed and redacted.
    """

    def __init__(
        self,
        include_evaluation_id: bool = True,
        json_format: bool = True,
        redact_secrets: bool = True,
        *args: Any,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.include_evaluation_id = include_evaluation_id
        self.json_format = json_format
        self.redact_secrets = redact_secrets

    def format(self, record: logging.LogRecord) -> str:
        evaluation_id = getattr(record, "evaluation_id", None)

        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_evaluation_id and evaluation_id is not None:
            log_data["evaluation_id"] = evaluation_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = safe_log_value(value, redact=self.redact_secrets)

        if self.redact_secrets:
            log_data["message"] = redact_secrets(log_data["message"])

        if self.json_format:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            f"{log_data['level']}",
            f"{log_data['logger']}",
        ]
        if evaluation_id is not None and self.include_evaluation_id:
            parts.append(f"evaluation_id={evaluation_id}")
        parts.append(f": {log_data['message']}")
        return " ".join(parts)


class EvaluationLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that stamps every record with an evaluation id.

    Usage:
        logger = get_evaluation_logger(__name__, evaluation_id=7)
        logger.info("Decision reached", extra={"address": address})
    """

    def __init__(self, logger: logging.Logger, evaluation_id: Optional[int | str] = None):
        super().__init__(logger, {})
        self.evaluation_id = evaluation_id

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        evaluation_id = kwargs.pop("evaluation_id", self.evaluation_id)

        extra = kwargs.get("extra", {})
        if evaluation_id is not None:
            extra["evaluation_id"] = evaluation_id
        kwargs["extra"] = extra

        return msg, kwargs


def setup_logging(
    config: Optional[GuardConfig] = None,
    json_format: Optional[bool] = None,
    redact_secrets: bool = True,
) -> None:
    """Configure root logging for a host process.

    Args:
        config: GuardConfig instance (if None, loads from environment)
        json_format: Override ``config.log_json`` when given
        redact_secrets: Whether to redact secrets (default: True)
    """
    if config is None:
        from .config import load_config_from_env
        config = load_config_from_env()

    level_map = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }
    log_level = level_map.get(config.log_level, logging.INFO)
    use_json = config.log_json if json_format is None else json_format

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        EvaluationFormatter(
            include_evaluation_id=True,
            json_format=use_json,
            redact_secrets=redact_secrets,
        )
    )
    root_logger.addHandler(console_handler)


def get_evaluation_logger(name: str, evaluation_id: Optional[int | str] = None) -> EvaluationLoggerAdapter:
    """Get a logger adapter bound to one evaluation cycle.

    Example:
        logger = get_evaluation_logger(__name__, evaluation_id=3)
        logger.info("Redirect suppressed")
    """
    return EvaluationLoggerAdapter(logging.getLogger(name), evaluation_id=evaluation_id)


__all__ = [
    "safe_preview",
    "redact_secrets",
    "safe_log_value",
    "EvaluationFormatter",
    "EvaluationLoggerAdapter",
    "setup_logging",
    "get_evaluation_logger",
]

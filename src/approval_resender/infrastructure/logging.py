"""
Structured JSON logging.

One JSON object per line on stdout, which Render and most log
drains index without further parsing:
- severity / message / timestamp / logger
- Flask request correlation (request_id, endpoint)
- extra_fields with credential-like keys dropped
"""

import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, TypeVar

from flask import Flask, g, has_request_context, request

from approval_resender.config import settings

REQUEST_ID_HEADER = "X-Request-ID"

F = TypeVar("F", bound=Callable[..., Any])


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON."""

    # Substrings that always mark a secret. Credential set labels
    # ("doc", "sparta") are logged under *_credential keys and must stay.
    SENSITIVE_PATTERNS = frozenset([
        "password", "secret", "token", "api_key", "authorization", "private",
    ])

    # Gmail's base64url MIME payload.
    SENSITIVE_KEYS = frozenset(["raw"])

    MAX_VALUE_LENGTH = 1000

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "logger": record.name,
        }

        if has_request_context():
            for attr in ("request_id", "endpoint"):
                value = g.get(attr)
                if value:
                    entry[attr] = value

        for key, value in (getattr(record, "extra_fields", None) or {}).items():
            if self._is_sensitive(key):
                continue
            if isinstance(value, str) and len(value) > self.MAX_VALUE_LENGTH:
                value = value[:self.MAX_VALUE_LENGTH] + "... [truncated]"
            entry[key] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        if record.levelno >= logging.WARNING:
            entry["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(entry, ensure_ascii=False, default=str)

    def _is_sensitive(self, key: str) -> bool:
        key_lower = key.lower()
        if key_lower in self.SENSITIVE_KEYS:
            return True
        return any(pattern in key_lower for pattern in self.SENSITIVE_PATTERNS)


class StructuredLogger(logging.LoggerAdapter):
    """Logger adapter that merges bound fields into extra_fields."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get("extra", {})
        extra_fields = extra.pop("extra_fields", {})

        if self.extra:
            extra_fields = {**self.extra, **extra_fields}

        kwargs["extra"] = {**extra, "extra_fields": extra_fields}
        return msg, kwargs

    def with_fields(self, **fields: Any) -> "StructuredLogger":
        """Create a new logger with additional bound fields."""
        return StructuredLogger(self.logger, {**self.extra, **fields})


def get_logger(name: str = "approval-resender") -> StructuredLogger:
    """
    Create (once) and return a structured JSON logger.

    Args:
        name: Logger name.
    """
    base_logger = logging.getLogger(name)

    if not base_logger.handlers:
        base_logger.setLevel(getattr(logging, settings.log_level, logging.INFO))

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())

        base_logger.addHandler(handler)
        base_logger.propagate = False

    return StructuredLogger(base_logger, {})


def log_request_context(app: Flask) -> None:
    """
    Attach request correlation and an access log line to the app.

    The caller's ``X-Request-ID`` is reused when present and echoed
    back, so a frontend can quote it when reporting a failed resend.

    Args:
        app: Flask application instance.
    """
    @app.before_request
    def before_request() -> None:
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        g.endpoint = request.endpoint
        g.start_time = time.time()

    @app.after_request
    def after_request(response):
        duration_ms = None
        if "start_time" in g:
            duration_ms = int((time.time() - g.start_time) * 1000)
        if "request_id" in g:
            response.headers[REQUEST_ID_HEADER] = g.request_id

        get_logger("request").info(
            f"{request.method} {request.path} -> {response.status_code}",
            extra={"extra_fields": {
                "method": request.method,
                "path": request.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            }}
        )
        return response


def log_duration(operation: str) -> Callable[[F], F]:
    """
    Decorator to measure and log operation duration.

    Args:
        operation: Operation name for logging.
    """
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            op_logger = get_logger(func.__module__)
            start = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                op_logger.error(
                    f"{operation} failed: {e}",
                    extra={"extra_fields": {
                        "operation": operation,
                        "duration_ms": int((time.time() - start) * 1000),
                        "status": "error",
                        "error_type": type(e).__name__,
                    }}
                )
                raise
            op_logger.info(
                f"{operation} completed",
                extra={"extra_fields": {
                    "operation": operation,
                    "duration_ms": int((time.time() - start) * 1000),
                    "status": "success",
                }}
            )
            return result
        return wrapper  # type: ignore
    return decorator


# Global application logger
logger = get_logger("approval-resender")

"""
Infrastructure Layer.

This layer contains all external dependencies and adapters:
- Logging and metrics
- OAuth credential resolution
- Google REST clients (Sheets, Drive, Gmail)
- Sheet repositories
"""

from approval_resender.infrastructure.logging import (
    get_logger,
    log_duration,
    log_request_context,
    logger,
    StructuredLogger,
)


__all__ = [
    "get_logger",
    "log_duration",
    "log_request_context",
    "logger",
    "StructuredLogger",
]

"""Cross-cutting pieces of the service: JSON logging and health probes."""

from .health import DEFAULT_REQUIRED_ENV, HealthStatus, ServiceHealth
from .logging_config import (
    LoggerAdapter,
    RequestLoggingMiddleware,
    SecurityFilter,
    generate_request_id,
    get_logger,
    set_request_context,
    setup_logging,
)

__all__ = [
    "DEFAULT_REQUIRED_ENV",
    "HealthStatus",
    "ServiceHealth",
    "LoggerAdapter",
    "RequestLoggingMiddleware",
    "SecurityFilter",
    "generate_request_id",
    "get_logger",
    "set_request_context",
    "setup_logging",
]

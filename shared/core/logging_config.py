"""
Structured logging for the order & delivery service.

Every record is written as one JSON object per line. Business fields travel
in ``extra={'extra_fields': {...}}`` and end up under ``"fields"``; the
request id, correlation id and acting party of the current HTTP request are
attached automatically.
"""

import json
import logging
import logging.handlers
import sys
import time
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
actor_id_var: ContextVar[Optional[str]] = ContextVar('actor_id', default=None)

_CONTEXT_VARS = (
    ('request_id', request_id_var),
    ('correlation_id', correlation_id_var),
    ('actor_id', actor_id_var),
)

SLOW_REQUEST_MS = 1000.0


class StructuredFormatter(logging.Formatter):
    """Renders a record as a single JSON line."""

    def __init__(self, service_name: str, version: str = "1.0.0", environment: str = "development"):
        super().__init__()
        self.service = {"name": service_name, "version": version, "environment": environment}

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "@timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service,
            "source": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        context = {key: getattr(record, key) for key, _ in _CONTEXT_VARS if getattr(record, key, None)}
        if context:
            entry["context"] = context

        fields = getattr(record, 'extra_fields', None)
        if fields:
            entry["fields"] = fields

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["error"] = {
                "type": exc_type.__name__,
                "detail": str(exc_value),
                "stacktrace": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(entry, default=str)


class PerformanceFilter(logging.Filter):
    """Rounds ``duration_ms`` and flags requests slower than ``slow_ms``."""

    def __init__(self, slow_ms: float = SLOW_REQUEST_MS):
        super().__init__()
        self.slow_ms = slow_ms

    def filter(self, record: logging.LogRecord) -> bool:
        fields = getattr(record, 'extra_fields', None)
        if isinstance(fields, dict) and isinstance(fields.get('duration_ms'), (int, float)):
            duration = round(fields['duration_ms'], 2)
            record.extra_fields = {**fields, 'duration_ms': duration, 'slow': duration >= self.slow_ms}
        return True


class SecurityFilter(logging.Filter):
    """Masks sensitive values in ``extra_fields`` before they are written.

    ID numbers keep their last four characters, everything else listed in
    ``REDACTED_KEYS`` is replaced outright.
    """

    REDACTED_KEYS = frozenset({'password', 'token', 'api_key', 'secret', 'authorization', 'cookie'})
    PARTIAL_KEYS = frozenset({'id_number'})

    def filter(self, record: logging.LogRecord) -> bool:
        fields = getattr(record, 'extra_fields', None)
        if isinstance(fields, dict):
            record.extra_fields = self._mask(fields)
        return True

    def _mask(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        masked = {}
        for key, value in fields.items():
            lowered = key.lower()
            if lowered in self.REDACTED_KEYS:
                masked[key] = "***"
            elif lowered in self.PARTIAL_KEYS and value is not None:
                masked[key] = "***" + str(value)[-4:]
            elif isinstance(value, dict):
                masked[key] = self._mask(value)
            else:
                masked[key] = value
        return masked


def setup_logging(
    service_name: str,
    level: str = "INFO",
    version: str = "1.0.0",
    environment: str = "development",
    log_file: Optional[str] = None,
) -> None:
    """
    Route the root logger to stdout (and optionally a rotating file) as JSON.

    Args:
        service_name: reported under ``service.name`` in every record
        level: root log level name
        version: reported under ``service.version``
        environment: reported under ``service.environment``
        log_file: also write to this path, rotated at 10MB
    """
    formatter = StructuredFormatter(service_name, version, environment)
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.handlers.RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5))

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())
    root_logger.handlers = []
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(PerformanceFilter())
        handler.addFilter(SecurityFilter())
        root_logger.addHandler(handler)

    for name, quiet_level in (
        ('uvicorn.access', logging.WARNING),
        ('sqlalchemy.engine', logging.WARNING),
        ('alembic', logging.INFO),
    ):
        logging.getLogger(name).setLevel(quiet_level)

    root_logger.info(
        "Logging initialized",
        extra={'extra_fields': {'level': level.upper(), 'file': log_file}},
    )


class LoggerAdapter(logging.LoggerAdapter):
    """Copies the current request context onto each record."""

    def process(self, msg, kwargs):
        extra = dict(kwargs.get('extra') or {})
        for key, var in _CONTEXT_VARS:
            value = var.get()
            if value:
                extra.setdefault(key, value)
        kwargs['extra'] = extra
        return msg, kwargs


def get_logger(name: str) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name), {})


def set_request_context(
    request_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
    actor_id: Optional[str] = None,
) -> None:
    request_id_var.set(request_id)
    correlation_id_var.set(correlation_id)
    actor_id_var.set(actor_id)


def generate_request_id() -> str:
    return uuid.uuid4().hex


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    One record per finished request with status and duration.

    Honors incoming ``X-Request-ID``, ``X-Correlation-ID`` and ``X-Actor-ID``
    headers and echoes the request id back on the response.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get('X-Request-ID') or generate_request_id()
        set_request_context(
            request_id=request_id,
            correlation_id=request.headers.get('X-Correlation-ID'),
            actor_id=request.headers.get('X-Actor-ID'),
        )
        logger = get_logger(__name__)
        fields = {'method': request.method, 'path': request.url.path}
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            fields['duration_ms'] = (time.perf_counter() - started) * 1000
            logger.exception("Request failed", extra={'extra_fields': fields})
            raise

        fields['duration_ms'] = (time.perf_counter() - started) * 1000
        fields['status_code'] = response.status_code
        log = logger.warning if response.status_code >= 500 else logger.info
        log("Request handled", extra={'extra_fields': fields})

        response.headers['X-Request-ID'] = request_id
        return response

"""Structured JSON logging with request context and secret redaction.

Every record is emitted as one JSON object carrying the service name,
environment and the id of the request being served. Raw model output is
logged when the pipeline absorbs a failure, so in production API keys and
bearer tokens are redacted before anything is written.
"""

import logging
import re
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from .config import settings

request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)

# Fields owned by logging itself; never rewritten by the sanitizer
_STANDARD_ATTRS = frozenset({
    'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
    'levelno', 'lineno', 'module', 'msecs', 'message', 'pathname', 'process',
    'processName', 'relativeCreated', 'thread', 'threadName', 'exc_info',
    'exc_text', 'stack_info', 'taskName', 'timestamp', 'level', 'function',
    'line', 'service', 'environment', 'request_id',
})

_SENSITIVE_KEYS = ('api_key', 'apikey', 'secret', 'token', 'password', 'authorization')
_MAX_ITEMS = 10
REDACTED = "***REDACTED***"


class SecuritySanitizer:
    """Redact credentials from log output.

    Copy text and phone numbers are left alone: they are the content being
    checked, not secrets.
    """

    SENSITIVE_PATTERNS = (
        re.compile(r'(api[_-]?key["\s:=]+["\']?)([a-zA-Z0-9_-]{20,})', re.IGNORECASE),
        re.compile(r'(bearer\s+)([a-zA-Z0-9_.-]{20,})', re.IGNORECASE),
        re.compile(r'()(sk-or-(?:v1-)?[a-zA-Z0-9_-]{10,})'),
    )

    @classmethod
    def sanitize_string(cls, text: Any) -> str:
        sanitized = text if isinstance(text, str) else str(text)
        for pattern in cls.SENSITIVE_PATTERNS:
            sanitized = pattern.sub(r'\1' + REDACTED, sanitized)
        return sanitized

    @classmethod
    def sanitize(cls, value: Any, max_depth: int = 3) -> Any:
        """Sanitize strings, mappings and lists recursively; other values pass through."""
        if isinstance(value, str):
            return cls.sanitize_string(value)
        if isinstance(value, dict):
            if max_depth <= 0:
                return {"...": "max_depth_reached"}
            return {
                key: REDACTED if any(s in str(key).lower() for s in _SENSITIVE_KEYS)
                else cls.sanitize(item, max_depth - 1)
                for key, item in value.items()
            }
        if isinstance(value, (list, tuple)):
            if max_depth <= 0:
                return ["...max_depth_reached"]
            items = [cls.sanitize(item, max_depth - 1) for item in value[:_MAX_ITEMS]]
            if len(value) > _MAX_ITEMS:
                items.append(f"...and {len(value) - _MAX_ITEMS} more items")
            return items
        return value


class StructuredFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding service and request context."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)

        log_record.update({
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
            'service': settings.service_name,
            'environment': settings.service_env,
        })
        request_id = request_id_var.get()
        if request_id:
            log_record['request_id'] = request_id

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            exception_info = {
                'type': exc_type.__name__,
                'message': SecuritySanitizer.sanitize_string(str(exc_value)),
            }
            # Tracebacks stay out of production logs
            if not settings.is_production:
                exception_info['traceback'] = traceback.format_exception(exc_type, exc_value, exc_tb)
            log_record['exception'] = exception_info
            log_record.pop('exc_info', None)

        if settings.is_production:
            for key in [k for k in log_record if k not in _STANDARD_ATTRS]:
                log_record[key] = SecuritySanitizer.sanitize(log_record[key])


def setup_logging(level: str = "INFO") -> None:
    """Install the structured formatter on the root logger."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter('%(timestamp)s %(level)s %(name)s %(message)s'))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Keep HTTP client chatter out of request logs
    for noisy in ('httpx', 'httpcore'):
        logging.getLogger(noisy).setLevel(logging.WARNING)


class StructuredLogger:
    """Logger taking structured fields as keyword arguments."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _log(self, level: int, message: str, exc_info: bool = False, **fields):
        if settings.is_production:
            message = SecuritySanitizer.sanitize_string(message)
            fields = SecuritySanitizer.sanitize(fields)
        self.logger.log(level, message, extra=fields, exc_info=exc_info)

    def debug(self, message: str, **fields):
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields):
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields):
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields):
        self._log(logging.ERROR, message, **fields)

    def exception(self, message: str, **fields):
        self._log(logging.ERROR, message, exc_info=True, **fields)


class LoggerFactory:
    _loggers: Dict[str, StructuredLogger] = {}

    @classmethod
    def get_logger(cls, name: str) -> StructuredLogger:
        if name not in cls._loggers:
            cls._loggers[name] = StructuredLogger(name)
        return cls._loggers[name]


def log_external_call(logger: StructuredLogger, service: str, operation: str, **fields):
    """Log a completed call to the model provider or another collaborator."""
    logger.info(
        f"External call to {service}: {operation}",
        external_service=service,
        operation=operation,
        event_type="external_call",
        **fields
    )


def log_business_event(logger: StructuredLogger, event: str, **fields):
    """Log a domain event such as a completed check."""
    logger.info(
        f"Business event: {event}",
        business_event=event,
        event_type="business",
        **fields
    )

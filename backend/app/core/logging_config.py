"""
SIAKAD - Centralized Logging Configuration

Development logs are plain text with the request id and actor inline;
production logs are one JSON object per line. Every record emitted while a
request is being served carries:

- request_id: set by RequestLoggingMiddleware (or taken from X-Request-ID)
- user_id: the acting student NIM, or "admin:<username>" on admin pages
"""

import json
import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from app.core.config import settings


request_id_var: ContextVar[str] = ContextVar('request_id', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')


def get_request_id() -> str:
    return request_id_var.get() or ''


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_user_id() -> str:
    """Acting student NIM or admin id for the current request"""
    return user_id_var.get() or ''


def set_user_id(user_id: str) -> None:
    user_id_var.set(user_id)


def generate_request_id() -> str:
    return uuid.uuid4().hex[:12]


def mask_email(value: Optional[str]) -> Optional[str]:
    """budi.santoso@polban.ac.id -> bu***@polban.ac.id"""
    if not value or '@' not in value:
        return value
    local, domain = value.split('@', 1)
    return f"{local[:2]}***@{domain}"


# LogRecord attributes that are not "extra" fields
_STANDARD_ATTRS = set(vars(logging.makeLogRecord({}))) | {'message', 'asctime', 'request_id', 'user_id'}


class JSONFormatter(logging.Formatter):
    """One JSON document per record, for production log shipping"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "request_id": get_request_id() or None,
            "user_id": get_user_id() or None,
        }

        if record.exc_info and record.exc_info[0]:
            exc_type, exc_value, exc_tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        entry.update({
            key: value for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith('_')
        })

        return json.dumps(entry, default=str)


class ContextualFormatter(logging.Formatter):
    """Plain text formatter exposing %(request_id)s and %(user_id)s"""

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = get_request_id() or '-'
        record.user_id = get_user_id() or '-'
        return super().format(record)


class SiakadLogger(logging.Logger):
    """Logger with one helper per kind of event the application records"""

    def log_request(self, method: str, path: str, status_code: int,
                    duration_ms: float, **kwargs) -> None:
        """One line per HTTP request; 4xx as warnings, 5xx as errors"""
        level = logging.INFO
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING

        self.log(
            level,
            f"{method} {path} -> {status_code} ({duration_ms:.1f}ms)",
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": round(duration_ms, 2),
                **kwargs
            }
        )

    def log_auth_event(self, event: str, success: bool, identifier: str = None,
                       reason: str = None, **kwargs) -> None:
        """
        Registration, login, logout, email verification and password
        recovery. identifier is a NIM, an email (masked) or an admin username.
        """
        shown = mask_email(identifier)
        outcome = "ok" if success else "rejected"
        message = f"[Auth] {event} {outcome}"
        if shown:
            message += f" for {shown}"
        if reason:
            message += f": {reason}"

        self.log(
            logging.INFO if success else logging.WARNING,
            message,
            extra={
                "event_type": "auth",
                "auth_event": event,
                "auth_success": success,
                "auth_identifier": shown,
                "failure_reason": reason,
                **kwargs
            }
        )

    def log_admin_action(self, admin_username: str, action: str, student_nim: str,
                         **kwargs) -> None:
        """Changes made to student records from the admin pages"""
        self.info(
            f"[Admin] {admin_username} {action} student {student_nim}",
            extra={
                "event_type": f"admin_student_{action}",
                "admin_username": admin_username,
                "student_nim": student_nim,
                **kwargs
            }
        )

    def log_error_with_context(self, error: Exception, context: str = None,
                               **kwargs) -> None:
        """Unhandled exception with traceback and where it happened"""
        self.error(
            f"Unhandled {type(error).__name__} in {context or 'unknown context'}: {error}",
            exc_info=(type(error), error, error.__traceback__),
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_context": context,
                **kwargs
            }
        )


def _build_handlers(is_production: bool) -> list:
    if is_production:
        console_formatter = file_formatter = JSONFormatter()
    else:
        console_formatter = ContextualFormatter("%(levelname)-8s | [%(request_id)s] %(message)s")
        file_formatter = ContextualFormatter(
            "%(asctime)s | %(levelname)-8s | [%(request_id)s] [%(user_id)s] | "
            "%(module)s:%(lineno)d | %(message)s"
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_formatter)
    handlers = [console_handler]

    if settings.LOG_FILE:
        log_file = Path(settings.LOG_FILE)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    return handlers


def setup_logging() -> SiakadLogger:
    """Configure the "siakad" logger for the current environment"""
    logging.setLoggerClass(SiakadLogger)

    siakad_logger = logging.getLogger("siakad")
    siakad_logger.__class__ = SiakadLogger
    siakad_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    siakad_logger.propagate = False

    siakad_logger.handlers.clear()
    is_production = settings.ENVIRONMENT == "production"
    for handler in _build_handlers(is_production):
        siakad_logger.addHandler(handler)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "aiosmtplib"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return siakad_logger


logger: SiakadLogger = setup_logging()


__all__ = [
    'logger',
    'setup_logging',
    'mask_email',
    'get_request_id',
    'set_request_id',
    'get_user_id',
    'set_user_id',
    'generate_request_id',
    'SiakadLogger',
]

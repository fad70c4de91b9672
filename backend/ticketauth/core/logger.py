"""
Logging Module for the Ticket Auth Service

Configures structlog on top of the standard library logging module. Records
are rendered as JSON (python-json-logger) in deployed environments and as
colored console lines (colorlog) during development. Security-relevant events
of the authentication flow are logged through ``log_security_event``.
"""

import logging
import sys
from enum import Enum
from typing import Any, Dict, Optional

# Third-party imports
import colorlog
import structlog
from pythonjsonlogger import jsonlogger

# Local imports
from ..config import Settings


class LogFormat(Enum):
    """Log output formats"""
    JSON = "json"
    CONSOLE = "console"


class SecurityEventType(Enum):
    """Security event types for logging"""
    REGISTERED = "registered"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILURE = "login_failure"
    OTP_ISSUED = "otp_issued"
    OTP_VERIFIED = "otp_verified"
    OTP_REJECTED = "otp_rejected"
    LOGOUT = "logout"
    ACCESS_DENIED = "access_denied"


class CustomJSONFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with application info"""

    def __init__(self, app_name: str, app_version: str, environment: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.app_name = app_name
        self.app_version = app_version
        self.environment = environment

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record['application'] = self.app_name
        log_record['version'] = self.app_version
        log_record['environment'] = self.environment
        log_record['logger'] = record.name

        # Ensure level is string
        if 'level' not in log_record:
            log_record['level'] = record.levelname


def _build_handler(settings: Settings) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)

    if settings.log_format == LogFormat.CONSOLE.value:
        handler.setFormatter(colorlog.ColoredFormatter(
            '%(log_color)s%(asctime)s [%(levelname)8s] %(name)s: %(message)s%(reset)s',
            datefmt='%Y-%m-%d %H:%M:%S',
            log_colors={
                'DEBUG': 'cyan',
                'INFO': 'green',
                'WARNING': 'yellow',
                'ERROR': 'red',
                'CRITICAL': 'red,bg_white',
            }
        ))
    else:
        handler.setFormatter(CustomJSONFormatter(
            settings.app_name,
            settings.app_version,
            settings.environment,
            '%(asctime)s %(levelname)s %(name)s %(message)s',
        ))

    return handler


def setup_logging(settings: Settings) -> None:
    """Configure structlog and the root stdlib logger"""

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    if settings.debug:
        level = logging.DEBUG

    # Replace only the handler installed by a previous call
    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_ticketauth", False):
            root.removeHandler(existing)

    handler = _build_handler(settings)
    handler._ticketauth = True
    root.addHandler(handler)
    root.setLevel(level)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == LogFormat.CONSOLE.value:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    else:
        # Hand the event dict to the stdlib JSON formatter as extra fields
        processors.append(structlog.stdlib.render_to_log_kwargs)

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


security_logger = structlog.get_logger("ticketauth.security")


def log_security_event(
    event_type: SecurityEventType,
    user_id: Optional[int] = None,
    **details: Any
) -> None:
    """Log an authentication flow event. Never pass secrets in details."""

    event: Dict[str, Any] = {"event_type": event_type.value, "user_id": user_id}
    event.update(details)

    if event_type in (SecurityEventType.LOGIN_FAILURE,
                      SecurityEventType.OTP_REJECTED,
                      SecurityEventType.ACCESS_DENIED):
        security_logger.warning("security_event", **event)
    else:
        security_logger.info("security_event", **event)

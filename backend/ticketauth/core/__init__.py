"""
Core Module for the Ticket Auth Service

Logging setup and security helpers shared by the rest of the application.
"""

from .logger import SecurityEventType, log_security_event, setup_logging
from .security import PasswordManager

__all__ = [
    "PasswordManager",
    "SecurityEventType",
    "log_security_event",
    "setup_logging",
]

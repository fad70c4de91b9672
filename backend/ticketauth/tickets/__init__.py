"""
Tickets Module

Ticket purchase, the protected operation behind the OTP gate.
"""

from .service import TicketService, parse_expired_date

__all__ = [
    "TicketService",
    "parse_expired_date",
]

"""
TicketAuth Backend Application

Account registration, password login with a one-time-passcode second factor,
and OTP-gated ticket purchase.
"""

__version__ = "1.0.0"

# Application metadata
APP_INFO = {
    "title": "TicketAuth API",
    "description": "Account and session authentication with OTP verification",
    "version": __version__,
}

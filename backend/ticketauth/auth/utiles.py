import hmac
import secrets
import string
from typing import Optional

from email_validator import EmailNotValidError, validate_email


def normalize_email(email: str) -> Optional[str]:
    """Return the normalized address, or None when the format is invalid"""

    try:
        return validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError:
        return None


def generate_otp(length: int = 6) -> str:
    """Generate numeric OTP"""

    return ''.join(secrets.choice(string.digits) for _ in range(length))


def validate_otp_format(otp: str, length: int = 6) -> bool:
    """Validate OTP format"""

    return isinstance(otp, str) and len(otp) == length and otp.isdigit() and otp.isascii()


def otp_matches(submitted: str, stored: Optional[str]) -> bool:
    """Constant-time comparison; a missing stored code never matches"""

    if stored is None or not isinstance(submitted, str):
        return False
    return hmac.compare_digest(submitted.encode('utf-8'), str(stored).encode('utf-8'))


def is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()

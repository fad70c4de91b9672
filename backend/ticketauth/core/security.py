"""
Security Module for the Ticket Auth Service

Password hashing and verification with bcrypt.
"""

import secrets

import bcrypt
import structlog

logger = structlog.get_logger(__name__)

# bcrypt only looks at the first 72 bytes of the input
BCRYPT_MAX_PASSWORD_BYTES = 72


class PasswordManager:
    """Password hashing and validation utilities"""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds
        # Checked against when the account does not exist; hashed once here,
        # off the request path
        self.dummy_hash = self.hash_password(secrets.token_urlsafe(16))

    def is_hashable(self, password: str) -> bool:
        return len(password.encode('utf-8')) <= BCRYPT_MAX_PASSWORD_BYTES

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt; the salt is embedded in the result"""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        try:
            return bcrypt.checkpw(
                plain_password.encode('utf-8'),
                hashed_password.encode('utf-8')
            )
        except ValueError:
            # Malformed hash or over-long password
            logger.warning("password_verification_failed")
            return False

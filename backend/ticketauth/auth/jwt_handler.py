from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
import jwt
import logging
from ..config import Settings

logger = logging.getLogger(__name__)

ISSUER = "ticketauth"

class JWTHandler:
    """JWT bearer tokens issued after a successful OTP verification"""

    def __init__(self, settings: Settings):
        self.secret_key = settings.jwt_secret_key
        self.algorithm = settings.jwt_algorithm
        self.access_token_expire_minutes = settings.jwt_access_token_expire_minutes

    def create_access_token(self, user_id: int, session_id: str, additional_claims: Dict[str, Any] = None) -> str:
        """Create JWT access token bound to the verified session it was issued for"""

        now = datetime.now(timezone.utc)
        payload = {
            "user_id": user_id,
            "sid": session_id,
            "type": "access",
            "exp": now + timedelta(minutes=self.access_token_expire_minutes),
            "iat": now,
            "iss": ISSUER
        }

        if additional_claims:
            payload.update(additional_claims)

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        logger.debug(f"Access token created for user {user_id}")
        return token

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Verify and decode JWT token; None when invalid or expired"""

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=ISSUER,
                options={"require": ["exp", "iat", "iss", "sid"]}
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            return None

        # Check token type
        if payload.get("type") != "access":
            logger.warning("Invalid token type for access token verification")
            return None

        if not isinstance(payload.get("user_id"), int):
            logger.warning("Access token without user id")
            return None

        if not isinstance(payload.get("sid"), str) or not payload["sid"]:
            logger.warning("Access token without session id")
            return None

        return payload

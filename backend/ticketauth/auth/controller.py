"""
Authentication flow: registration, password login with OTP issuance,
OTP verification and the gate in front of protected operations.

Session states::

    (none) --login--> {otp_verified: false} --verify--> {otp_verified: true}
       ^                     |                                  |
       +------ logout / TTL expiry -----------------------------+
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.logger import SecurityEventType, log_security_event
from ..core.security import PasswordManager
from ..database import User
from ..exceptions import (
    DuplicateAccountError,
    InvalidCredentialsError,
    InvalidOtpError,
    NotAuthenticatedError,
    StoreUnavailableError,
    ValidationError,
)
from ..stores import EphemeralStore, SessionRecord, SessionStore
from .jwt_handler import JWTHandler
from .utiles import generate_otp, is_blank, normalize_email, otp_matches, validate_otp_format

logger = structlog.get_logger(__name__)

OTP_KEY_PREFIX = "otp:"


def otp_key(email: str) -> str:
    return f"{OTP_KEY_PREFIX}{email}"


@dataclass
class LoginResult:
    user_id: int
    session_id: str
    otp: str


@dataclass
class VerifyResult:
    user_id: int
    token: str


class AuthFlowController:
    """Per-request orchestrator over the credential and ephemeral stores"""

    def __init__(
        self,
        db: AsyncSession,
        otp_store: EphemeralStore,
        sessions: SessionStore,
        passwords: PasswordManager,
        tokens: JWTHandler,
        otp_length: int = 6,
        otp_ttl_seconds: int = 60,
    ):
        self.db = db
        self.otp_store = otp_store
        self.sessions = sessions
        self.passwords = passwords
        self.tokens = tokens
        self.otp_length = otp_length
        self.otp_ttl_seconds = otp_ttl_seconds

    async def register(self, email: Optional[str], username: Optional[str], password: Optional[str]) -> User:
        if is_blank(email) or is_blank(username) or is_blank(password):
            raise ValidationError("Missing required fields")

        normalized = normalize_email(email.strip())
        if normalized is None:
            raise ValidationError("Invalid email format")

        if not self.passwords.is_hashable(password):
            raise ValidationError("Password is too long")

        password_hash = await asyncio.to_thread(self.passwords.hash_password, password)
        user = User(email=normalized, username=username, password=password_hash)

        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("registration_rejected_duplicate")
            raise DuplicateAccountError()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("registration_failed", error=str(e))
            raise StoreUnavailableError() from e

        log_security_event(SecurityEventType.REGISTERED, user.id)
        return user

    async def login(
        self,
        email: Optional[str],
        password: Optional[str],
        previous_session_id: Optional[str] = None,
    ) -> LoginResult:
        normalized = None if is_blank(email) else normalize_email(email.strip())
        user = await self._find_user_by_email(normalized) if normalized else None

        # Unknown accounts still pay for a bcrypt check
        stored_hash = user.password if user is not None else self.passwords.dummy_hash
        password_ok = not is_blank(password) and await asyncio.to_thread(
            self.passwords.verify_password, password, stored_hash
        )

        if user is None or not password_ok:
            log_security_event(SecurityEventType.LOGIN_FAILURE, user.id if user else None)
            raise InvalidCredentialsError()

        # A pre-login session id is never carried over
        await self.sessions.destroy(previous_session_id)

        otp = generate_otp(self.otp_length)
        key = otp_key(user.email)
        await self.otp_store.set(key, otp, self.otp_ttl_seconds)

        session_id = self.sessions.new_session_id()
        try:
            await self.sessions.set(session_id, SessionRecord(user_id=user.id, otp_verified=False))
        except StoreUnavailableError:
            logger.error("session_save_failed", user_id=user.id)
            await self._withdraw_otp(key, otp)
            raise

        log_security_event(SecurityEventType.LOGIN_SUCCESS, user.id)
        log_security_event(SecurityEventType.OTP_ISSUED, user.id, ttl_seconds=self.otp_ttl_seconds)
        return LoginResult(user_id=user.id, session_id=session_id, otp=otp)

    async def verify(self, session_id: Optional[str], otp: Any) -> VerifyResult:
        record = await self.sessions.get(session_id)
        if record is None:
            raise NotAuthenticatedError()

        user = await self._get_user(record.user_id)
        if user is None:
            raise NotAuthenticatedError()

        key = otp_key(user.email)
        stored = await self.otp_store.get(key)
        if not validate_otp_format(otp, self.otp_length) or not otp_matches(otp, stored):
            log_security_event(SecurityEventType.OTP_REJECTED, user.id)
            raise InvalidOtpError()

        # Single use: only the request that removes the code succeeds
        if not await self.otp_store.delete_if_equals(key, stored):
            log_security_event(SecurityEventType.OTP_REJECTED, user.id, reason="consumed")
            raise InvalidOtpError()

        record.otp_verified = True
        await self.sessions.set(session_id, record)

        token = self.tokens.create_access_token(user.id, session_id)
        log_security_event(SecurityEventType.OTP_VERIFIED, user.id)
        return VerifyResult(user_id=user.id, token=token)

    async def logout(self, session_id: Optional[str]) -> None:
        record = await self.sessions.get(session_id)
        await self.sessions.destroy(session_id)
        if record is not None:
            log_security_event(SecurityEventType.LOGOUT, record.user_id)

    async def authenticate(self, session_id: Optional[str], bearer_token: Optional[str] = None) -> User:
        """
        Resolve the caller of a protected operation.

        The caller needs a live session that completed OTP verification,
        presented either through the session cookie or through the bearer
        token issued by that verification. A token outlives neither logout
        nor session expiry.
        """
        record = await self.sessions.get(session_id)

        if record is not None and record.otp_verified:
            user_id = record.user_id
        elif bearer_token:
            user_id = await self._session_user_from_token(bearer_token)
        elif record is not None:
            log_security_event(SecurityEventType.ACCESS_DENIED, record.user_id, reason="otp_pending")
            raise NotAuthenticatedError("OTP verification required")
        else:
            raise NotAuthenticatedError()

        user = await self._get_user(user_id)
        if user is None:
            log_security_event(SecurityEventType.ACCESS_DENIED, user_id, reason="unknown_account")
            raise NotAuthenticatedError()
        return user

    async def _session_user_from_token(self, bearer_token: str) -> int:
        payload = self.tokens.verify_token(bearer_token)
        if payload is None:
            log_security_event(SecurityEventType.ACCESS_DENIED, None, reason="invalid_token")
            raise NotAuthenticatedError("Invalid or expired token")

        record = await self.sessions.get(payload["sid"])
        if record is None or not record.otp_verified or record.user_id != payload["user_id"]:
            log_security_event(SecurityEventType.ACCESS_DENIED, payload["user_id"], reason="session_ended")
            raise NotAuthenticatedError("Invalid or expired token")
        return record.user_id

    async def _find_user_by_email(self, email: str) -> Optional[User]:
        try:
            result = await self.db.execute(select(User).where(User.email == email))
        except SQLAlchemyError as e:
            logger.error("user_lookup_failed", error=str(e))
            raise StoreUnavailableError() from e
        return result.scalar_one_or_none()

    async def _get_user(self, user_id: int) -> Optional[User]:
        try:
            return await self.db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("user_lookup_failed", error=str(e))
            raise StoreUnavailableError() from e

    async def _withdraw_otp(self, key: str, otp: str) -> None:
        try:
            await self.otp_store.delete_if_equals(key, otp)
        except StoreUnavailableError:
            # The code expires on its own TTL; the login has already failed
            logger.error("otp_withdraw_failed")

"""Server-side session records addressed by an opaque cookie value."""

from __future__ import annotations

import secrets
from dataclasses import asdict, dataclass
from typing import Optional

import structlog

from .ephemeral import EphemeralStore

logger = structlog.get_logger(__name__)


@dataclass
class SessionRecord:
    user_id: int
    otp_verified: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "SessionRecord":
        return cls(user_id=int(data["user_id"]), otp_verified=bool(data.get("otp_verified", False)))


class SessionStore:
    """
    get/set/destroy over the ephemeral store.

    Every ``set`` rewrites the record with a fresh TTL; reads never extend it.
    """

    def __init__(self, store: EphemeralStore, ttl_seconds: int, prefix: str = "sess:"):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    @staticmethod
    def new_session_id() -> str:
        return secrets.token_urlsafe(32)

    def _key(self, session_id: str) -> str:
        return f"{self.prefix}{session_id}"

    async def get(self, session_id: Optional[str]) -> Optional[SessionRecord]:
        if not session_id:
            return None

        data = await self.store.get(self._key(session_id))
        if data is None:
            return None

        try:
            return SessionRecord.from_dict(data)
        except (KeyError, TypeError, ValueError):
            logger.warning("session_record_malformed")
            return None

    async def set(self, session_id: str, record: SessionRecord) -> None:
        await self.store.set(self._key(session_id), asdict(record), self.ttl_seconds)

    async def destroy(self, session_id: Optional[str]) -> None:
        if session_id:
            await self.store.delete(self._key(session_id))

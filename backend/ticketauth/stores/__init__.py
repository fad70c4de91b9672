"""
Ephemeral storage

OTP codes and session records, both held in Redis with per-key expiry.
"""

from .ephemeral import EphemeralStore, RedisEphemeralStore
from .sessions import SessionRecord, SessionStore

__all__ = [
    "EphemeralStore",
    "RedisEphemeralStore",
    "SessionRecord",
    "SessionStore",
]

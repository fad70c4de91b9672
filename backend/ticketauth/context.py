"""Process-wide handles built once at startup and shared by all requests."""

from dataclasses import dataclass, field
from typing import Optional

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from .auth.controller import AuthFlowController
from .auth.jwt_handler import JWTHandler
from .config import Settings
from .core.security import PasswordManager
from .database import create_engine, create_sessionmaker
from .stores import EphemeralStore, RedisEphemeralStore, SessionStore
from .tickets.service import TicketService


@dataclass
class AppContext:
    settings: Settings
    engine: AsyncEngine
    sessionmaker: async_sessionmaker[AsyncSession]
    ephemeral: EphemeralStore
    redis: Optional[Redis] = None
    sessions: SessionStore = field(init=False)
    passwords: PasswordManager = field(init=False)
    tokens: JWTHandler = field(init=False)

    def __post_init__(self):
        self.sessions = SessionStore(self.ephemeral, self.settings.session_ttl_seconds)
        self.passwords = PasswordManager(rounds=self.settings.bcrypt_rounds)
        self.tokens = JWTHandler(self.settings)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        engine = create_engine(settings)
        redis_client = Redis.from_url(settings.redis_url, decode_responses=True)
        return cls(
            settings=settings,
            engine=engine,
            sessionmaker=create_sessionmaker(engine),
            ephemeral=RedisEphemeralStore(redis_client),
            redis=redis_client,
        )

    def auth_controller(self, db: AsyncSession) -> AuthFlowController:
        return AuthFlowController(
            db,
            otp_store=self.ephemeral,
            sessions=self.sessions,
            passwords=self.passwords,
            tokens=self.tokens,
            otp_length=self.settings.otp_length,
            otp_ttl_seconds=self.settings.otp_ttl_seconds,
        )

    def ticket_service(self, db: AsyncSession) -> TicketService:
        return TicketService(
            db,
            image_url=self.settings.ticket_image_url,
            qr_code=self.settings.ticket_qr_code,
        )

    async def close(self) -> None:
        await self.engine.dispose()
        if self.redis is not None:
            await self.redis.aclose()

from datetime import datetime, timezone
from typing import Any, Callable
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import Ticket, User, utcnow
from ..exceptions import StoreUnavailableError, ValidationError

logger = logging.getLogger(__name__)


def parse_expired_date(value: Any) -> datetime:
    """
    Parse an ``expiredDate`` value into an aware UTC datetime.

    Accepts ISO-8601 date or datetime strings and numbers of epoch
    milliseconds. Naive values are taken as UTC.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("expiredDate is required")

    if isinstance(value, bool):
        raise ValidationError("Invalid expiredDate format")

    if isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise ValidationError("Invalid expiredDate format")
    elif isinstance(value, str):
        text = value.strip()
        if text[-1] in "zZ":
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError("Invalid expiredDate format")
    else:
        raise ValidationError("Invalid expiredDate format")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class TicketService:
    """Ticket purchase for callers that already passed the auth gate"""

    def __init__(
        self,
        db: AsyncSession,
        image_url: str,
        qr_code: str,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.image_url = image_url
        self.qr_code = qr_code
        self.clock = clock

    async def purchase(self, user: User, expired_date: Any) -> Ticket:
        expires_at = parse_expired_date(expired_date)
        now = self.clock()
        if expires_at <= now:
            raise ValidationError("expiredDate must be in the future")

        ticket = Ticket(
            user_id=user.id,
            expired_date=expires_at,
            image=self.image_url,
            qr_code=self.qr_code,
            created_at=now,
        )

        self.db.add(ticket)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to store ticket for user {user.id}: {type(e).__name__}")
            raise StoreUnavailableError() from e

        logger.info(f"Ticket {ticket.id} purchased by user {user.id}")
        return ticket

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import AsyncIterator, Optional

from .context import AppContext
from .auth.controller import AuthFlowController
from .tickets.service import TicketService


def get_context(request: Request) -> AppContext:
    """Application context created in the lifespan handler"""
    return request.app.state.context

async def get_db(context: AppContext = Depends(get_context)) -> AsyncIterator[AsyncSession]:
    async with context.sessionmaker() as db:
        yield db

def get_session_id(request: Request, context: AppContext = Depends(get_context)) -> Optional[str]:
    """Opaque session id from the session cookie, if any"""
    return request.cookies.get(context.settings.session_cookie_name)

def get_auth_controller(
    db: AsyncSession = Depends(get_db),
    context: AppContext = Depends(get_context)
) -> AuthFlowController:
    return context.auth_controller(db)

def get_ticket_service(
    db: AsyncSession = Depends(get_db),
    context: AppContext = Depends(get_context)
) -> TicketService:
    return context.ticket_service(db)

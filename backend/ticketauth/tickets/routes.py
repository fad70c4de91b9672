from fastapi import APIRouter, Depends, status

from ..auth.dependencies import get_current_user
from ..database import User
from ..dependencies import get_ticket_service
from ..schemas import BuyTicketRequest, TicketOut, TicketResponse
from .service import TicketService

router = APIRouter()

@router.post("/buy-ticket", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def buy_ticket(
    request: BuyTicketRequest,
    current_user: User = Depends(get_current_user),
    tickets: TicketService = Depends(get_ticket_service)
):
    """Purchase a ticket; requires a session that completed OTP verification"""

    ticket = await tickets.purchase(current_user, request.expiredDate)

    return TicketResponse(
        message="Ticket purchased successfully",
        ticket=TicketOut.model_validate(ticket)
    )

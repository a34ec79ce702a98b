from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from ticketdesk.tickets.comments import CommentService
from ticketdesk.tickets.models import Ticket
from ticketdesk.tickets.service import TicketService


async def get_ticket_service(request: Request) -> TicketService:
    service = getattr(request.app.state, "ticket_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Ticket service is not configured")
    return service


async def get_comment_service(request: Request) -> CommentService:
    service = getattr(request.app.state, "comment_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Comment service is not configured")
    return service


TicketServiceDep = Annotated[TicketService, Depends(get_ticket_service)]
CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]


async def get_ticket_or_404(ticket_id: int, service: TicketServiceDep) -> Ticket:
    ticket = await service.get_ticket(ticket_id)
    if ticket is None:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


TicketDep = Annotated[Ticket, Depends(get_ticket_or_404)]

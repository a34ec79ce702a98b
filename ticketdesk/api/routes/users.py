from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from ticketdesk.api.schemas import TicketResponse, UserResponse
from ticketdesk.dependencies.auth import CurrentUser, get_user_repository
from ticketdesk.dependencies.tickets import TicketServiceDep
from ticketdesk.tickets.models import User
from ticketdesk.tickets.repository import UserRepository

router = APIRouter(tags=["users"])


async def get_user_or_404(
    user_id: int,
    users: Annotated[UserRepository, Depends(get_user_repository)],
) -> User:
    user = await users.get(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


TargetUser = Annotated[User, Depends(get_user_or_404)]


@router.get("/me", response_model=UserResponse)
async def read_current_user(user: CurrentUser) -> UserResponse:
    return UserResponse.from_user(user)


@router.get("/users/{user_id}/tickets/owned", response_model=list[TicketResponse])
async def list_owned_tickets(target: TargetUser, service: TicketServiceDep, _: CurrentUser) -> list[TicketResponse]:
    tickets = await service.get_tickets_by_owner(target)
    return [TicketResponse.from_entity(ticket) for ticket in tickets]


@router.get("/users/{user_id}/tickets/assigned", response_model=list[TicketResponse])
async def list_assigned_tickets(target: TargetUser, service: TicketServiceDep, _: CurrentUser) -> list[TicketResponse]:
    tickets = await service.get_tickets_by_assignee(target)
    return [TicketResponse.from_entity(ticket) for ticket in tickets]

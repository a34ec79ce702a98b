from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from ticketdesk.api.schemas import (
    MessageResponse,
    TicketAssignRequest,
    TicketCreateRequest,
    TicketResponse,
    TicketUpdateRequest,
)
from ticketdesk.dependencies.auth import CurrentUser, get_user_repository
from ticketdesk.dependencies.tickets import TicketDep, TicketServiceDep
from ticketdesk.tickets.errors import InvalidTicketArgumentError, TicketConflictError
from ticketdesk.tickets.models import User
from ticketdesk.tickets.repository import UserRepository

router = APIRouter(prefix="/tickets", tags=["tickets"])

UserRepositoryDep = Annotated[UserRepository, Depends(get_user_repository)]


async def _load_user(users: UserRepository, user_id: int) -> User:
    user = await users.get(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("", response_model=list[TicketResponse])
async def list_tickets(service: TicketServiceDep, _: CurrentUser) -> list[TicketResponse]:
    tickets = await service.get_all_tickets()
    return [TicketResponse.from_entity(ticket) for ticket in tickets]


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(ticket: TicketDep, _: CurrentUser) -> TicketResponse:
    return TicketResponse.from_entity(ticket)


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: TicketCreateRequest,
    service: TicketServiceDep,
    users: UserRepositoryDep,
    user: CurrentUser,
) -> TicketResponse:
    assignee = None
    if payload.assigned_to_id is not None:
        assignee = await _load_user(users, payload.assigned_to_id)
    try:
        ticket = await service.create_ticket(
            owner=user,
            assigned_to=assignee,
            title=payload.title,
            description=payload.description,
            priority=payload.priority,
            status=payload.status,
        )
    except InvalidTicketArgumentError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return TicketResponse.from_entity(ticket)


@router.put("/{ticket_id}", response_model=TicketResponse)
async def update_ticket(
    payload: TicketUpdateRequest,
    ticket: TicketDep,
    service: TicketServiceDep,
    _: CurrentUser,
) -> TicketResponse:
    try:
        updated = await service.update_ticket(ticket, description=payload.description, priority=payload.priority)
    except InvalidTicketArgumentError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except TicketConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return TicketResponse.from_entity(updated)


@router.delete("/{ticket_id}", response_model=MessageResponse)
async def delete_ticket(ticket: TicketDep, service: TicketServiceDep, _: CurrentUser) -> MessageResponse:
    await service.delete_ticket(ticket)
    return MessageResponse(message="Ticket deleted successfully")


@router.post("/{ticket_id}/assign", response_model=TicketResponse)
async def assign_ticket(
    payload: TicketAssignRequest,
    ticket: TicketDep,
    service: TicketServiceDep,
    users: UserRepositoryDep,
    _: CurrentUser,
) -> TicketResponse:
    assignee = await _load_user(users, payload.user_id)
    try:
        updated = await service.assign_ticket(ticket, assignee)
    except TicketConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return TicketResponse.from_entity(updated)


@router.delete("/{ticket_id}/assign", response_model=TicketResponse)
async def unassign_ticket(ticket: TicketDep, service: TicketServiceDep, _: CurrentUser) -> TicketResponse:
    try:
        updated = await service.unassign_ticket(ticket)
    except TicketConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return TicketResponse.from_entity(updated)


@router.post("/{ticket_id}/start", response_model=TicketResponse)
async def start_ticket(ticket: TicketDep, service: TicketServiceDep, user: CurrentUser) -> TicketResponse:
    try:
        updated = await service.start_ticket(ticket, user)
    except InvalidTicketArgumentError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except TicketConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return TicketResponse.from_entity(updated)


@router.post("/{ticket_id}/close", response_model=TicketResponse)
async def close_ticket(ticket: TicketDep, service: TicketServiceDep, user: CurrentUser) -> TicketResponse:
    try:
        updated = await service.close_ticket(ticket, user)
    except InvalidTicketArgumentError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except TicketConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return TicketResponse.from_entity(updated)

"""Wire representations shared by the route modules."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ticketdesk.tickets.models import Comment, Ticket, User
from ticketdesk.tickets.state import TicketPriority, TicketStatus

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(value: datetime | None) -> str | None:
    return None if value is None else value.strftime(TIMESTAMP_FORMAT)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserSummary(CamelModel):
    id: int
    email: str

    @classmethod
    def from_entity(cls, user: User | None) -> "UserSummary | None":
        if user is None:
            return None
        return cls(id=user.id, email=user.email)


class UserResponse(UserSummary):
    roles: list[str]

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, email=user.email, roles=[role.value for role in user.roles])


class TicketResponse(CamelModel):
    id: int
    owner: UserSummary | None
    assigned_to: UserSummary | None
    title: str
    description: str
    priority: TicketPriority
    status: TicketStatus
    created_at: str | None
    first_assigned_at: str | None
    last_assigned_at: str | None

    @classmethod
    def from_entity(cls, ticket: Ticket) -> "TicketResponse":
        return cls(
            id=ticket.id,
            owner=UserSummary.from_entity(ticket.owner),
            assigned_to=UserSummary.from_entity(ticket.assigned_to),
            title=ticket.title,
            description=ticket.description,
            priority=ticket.priority,
            status=ticket.status,
            created_at=format_timestamp(ticket.created_at),
            first_assigned_at=format_timestamp(ticket.first_assigned_at),
            last_assigned_at=format_timestamp(ticket.last_assigned_at),
        )


class CommentResponse(CamelModel):
    id: int
    ticket_id: int
    author: UserSummary
    content: str
    created_at: str | None
    deleted: bool

    @classmethod
    def from_entity(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            ticket_id=comment.ticket_id,
            author=UserSummary.from_entity(comment.author),
            content=comment.content,
            created_at=format_timestamp(comment.created_at),
            deleted=comment.deleted,
        )


class MessageResponse(BaseModel):
    message: str


class TicketCreateRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    priority: str
    status: str
    assigned_to_id: int | None = None


class TicketUpdateRequest(CamelModel):
    description: str | None = Field(default=None)
    priority: str | None = Field(default=None)


class TicketAssignRequest(CamelModel):
    user_id: int


class CommentCreateRequest(CamelModel):
    content: str

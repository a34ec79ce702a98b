"""Ticket lifecycle and comment authorization."""

from .comments import CommentPolicy, CommentService
from .errors import InvalidTicketArgumentError, TicketConflictError, TicketForbiddenError, TicketServiceError
from .models import Comment, Role, Ticket, User
from .service import TicketService
from .state import TicketLifecycle, TicketPriority, TicketStatus

__all__ = [
    "Comment",
    "CommentPolicy",
    "CommentService",
    "InvalidTicketArgumentError",
    "Role",
    "Ticket",
    "TicketConflictError",
    "TicketForbiddenError",
    "TicketLifecycle",
    "TicketPriority",
    "TicketService",
    "TicketServiceError",
    "TicketStatus",
    "User",
]

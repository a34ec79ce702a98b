from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from .errors import InvalidTicketArgumentError, TicketForbiddenError
from .models import Comment, Ticket, User
from .repository import CommentRepository
from .service import utcnow

logger = logging.getLogger(__name__)


class CommentPolicy:
    """Decide who may add or remove comments."""

    @staticmethod
    def can_comment(ticket: Ticket, user: User) -> bool:
        return ticket.is_owned_by(user) or ticket.is_assigned_to(user)

    @staticmethod
    def can_delete(comment: Comment, user: User) -> bool:
        return comment.is_authored_by(user)

    @classmethod
    def assert_can_comment(cls, ticket: Ticket, user: User) -> None:
        if not cls.can_comment(ticket, user):
            raise TicketForbiddenError("Only the ticket owner or assignee may comment on this ticket")

    @classmethod
    def assert_can_delete(cls, comment: Comment, user: User) -> None:
        if not cls.can_delete(comment, user):
            raise TicketForbiddenError("Only the author may delete this comment")


class CommentService:
    """Add, soft-delete and list ticket comments."""

    def __init__(self, repository: CommentRepository, *, clock: Callable[[], datetime] = utcnow) -> None:
        self._repository = repository
        self._clock = clock

    async def add_comment(self, ticket: Ticket, author: User, content: str) -> Comment:
        if not content or not content.strip():
            raise InvalidTicketArgumentError("Comment content is required")
        CommentPolicy.assert_can_comment(ticket, author)

        comment = Comment(
            ticket_id=ticket.id,
            author=author,
            content=content,
            created_at=self._clock(),
        )
        created = await self._repository.add(comment)
        logger.info("Comment %s added to ticket %s by user %s", created.id, ticket.id, author.id)
        return created

    async def delete_comment(self, comment: Comment, caller: User) -> Comment:
        CommentPolicy.assert_can_delete(comment, caller)
        comment.mark_deleted()
        logger.info("Comment %s marked deleted by user %s", comment.id, caller.id)
        return await self._repository.save(comment)

    async def get_comment(self, comment_id: int) -> Comment | None:
        return await self._repository.get(comment_id)

    async def list_comments(self, ticket: Ticket, *, include_deleted: bool = False) -> list[Comment]:
        return await self._repository.list_for_ticket(ticket.id, include_deleted=include_deleted)

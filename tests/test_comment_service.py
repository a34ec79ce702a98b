from __future__ import annotations

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from ticketdesk.tickets.comments import CommentPolicy, CommentService
from ticketdesk.tickets.errors import InvalidTicketArgumentError, TicketForbiddenError
from ticketdesk.tickets.models import Comment, User
from ticketdesk.tickets.service import TicketService


@pytest.fixture
def comments(comment_repository, clock):
    return CommentService(comment_repository, clock=clock)


@pytest_asyncio.fixture
async def ticket(ticket_repository, owner, assignee, clock):
    service = TicketService(ticket_repository, clock=clock)
    return await service.create_ticket(
        owner=owner,
        assigned_to=assignee,
        title="Laptop",
        description="Battery swells",
        priority="normal",
        status="pending",
    )


@pytest.mark.asyncio
async def test_owner_and_assignee_may_comment(comments, ticket, owner, assignee):
    first = await comments.add_comment(ticket, owner, "Any update?")
    second = await comments.add_comment(ticket, assignee, "Replacement ordered")

    assert first.deleted is False
    assert first.ticket_id == ticket.id
    assert first.is_authored_by(owner)
    assert [c.id for c in await comments.list_comments(ticket)] == [first.id, second.id]


@pytest.mark.asyncio
async def test_outsider_may_not_comment(comments, ticket, outsider):
    with pytest.raises(TicketForbiddenError):
        await comments.add_comment(ticket, outsider, "Me too")

    assert await comments.list_comments(ticket, include_deleted=True) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", "\n\t"])
async def test_blank_comment_is_rejected(comments, ticket, owner, content):
    with pytest.raises(InvalidTicketArgumentError):
        await comments.add_comment(ticket, owner, content)


@pytest.mark.asyncio
async def test_author_soft_deletes_own_comment(comments, ticket, owner):
    comment = await comments.add_comment(ticket, owner, "Please ignore")

    await comments.delete_comment(comment, owner)

    assert comment.deleted is True
    assert await comments.get_comment(comment.id) is None
    assert await comments.list_comments(ticket) == []
    audit = await comments.list_comments(ticket, include_deleted=True)
    assert [(c.id, c.content, c.deleted) for c in audit] == [(comment.id, "Please ignore", True)]


@pytest.mark.asyncio
async def test_non_author_may_not_delete(comments, ticket, owner, assignee):
    comment = await comments.add_comment(ticket, owner, "Keep this")

    with pytest.raises(TicketForbiddenError):
        await comments.delete_comment(comment, assignee)

    assert comment.deleted is False
    stored = await comments.get_comment(comment.id)
    assert stored is not None and stored.deleted is False


@pytest.mark.asyncio
async def test_unassigned_former_assignee_loses_comment_rights(comments, ticket, ticket_repository, assignee):
    ticket.assigned_to = None
    await ticket_repository.save(ticket)

    assert not CommentPolicy.can_comment(ticket, assignee)
    with pytest.raises(TicketForbiddenError):
        await comments.add_comment(ticket, assignee, "Still here")


def test_policy_compares_by_id():
    comment = Comment(
        ticket_id=1,
        author=User(5, "author@test.com"),
        content="hello",
        created_at=datetime.now(timezone.utc),
    )

    assert CommentPolicy.can_delete(comment, User(5, "author@test.com"))
    assert not CommentPolicy.can_delete(comment, User(6, "author@test.com"))

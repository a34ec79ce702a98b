from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Response, status

from ticketdesk.api.schemas import CommentCreateRequest, CommentResponse
from ticketdesk.dependencies.auth import CurrentUser, ensure_role
from ticketdesk.dependencies.tickets import CommentServiceDep, TicketDep
from ticketdesk.tickets.errors import InvalidTicketArgumentError, TicketForbiddenError
from ticketdesk.tickets.models import Role

router = APIRouter(tags=["comments"])


@router.post(
    "/tickets/{ticket_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    payload: CommentCreateRequest,
    ticket: TicketDep,
    service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    try:
        comment = await service.add_comment(ticket, user, payload.content)
    except InvalidTicketArgumentError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except TicketForbiddenError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return CommentResponse.from_entity(comment)


@router.get("/tickets/{ticket_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    ticket: TicketDep,
    service: CommentServiceDep,
    user: CurrentUser,
    include_deleted: bool = Query(default=False, alias="includeDeleted"),
) -> list[CommentResponse]:
    # deleted comments are an audit view
    if include_deleted:
        ensure_role(user, Role.ADMIN)
    comments = await service.list_comments(ticket, include_deleted=include_deleted)
    return [CommentResponse.from_entity(comment) for comment in comments]


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(comment_id: int, service: CommentServiceDep, user: CurrentUser) -> Response:
    comment = await service.get_comment(comment_id)
    if comment is None:
        raise HTTPException(status_code=404, detail="Comment not found")
    try:
        await service.delete_comment(comment, user)
    except TicketForbiddenError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)

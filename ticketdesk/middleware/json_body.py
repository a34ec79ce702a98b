"""Reject write requests that do not declare a JSON body."""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

JSON_METHODS = frozenset({"POST", "PUT", "PATCH"})


def is_json_content_type(value: str | None) -> bool:
    if not value:
        return False
    media_type = value.split(";", 1)[0].strip().lower()
    return media_type == "application/json"


class JSONContentTypeMiddleware(BaseHTTPMiddleware):
    """Answer 400 before routing when a write request is not ``application/json``."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.method in JSON_METHODS and not is_json_content_type(request.headers.get("content-type")):
            return JSONResponse(status_code=400, content={"detail": "Content-Type must be application/json"})
        return await call_next(request)

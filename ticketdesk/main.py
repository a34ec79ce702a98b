import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ticketdesk.api.routes import comments, ping, tickets, users
from ticketdesk.core.config import Settings, get_settings
from ticketdesk.core.logging import configure_logging, init_tracer, shutdown_tracer
from ticketdesk.middleware import JSONContentTypeMiddleware
from ticketdesk.services.storage import build_storage, register_token_users
from ticketdesk.tickets.comments import CommentService
from ticketdesk.tickets.service import TicketService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    app.state.logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    app.state.storage = None
    app.state.ticket_service = None
    app.state.comment_service = None
    app.state.token_users = {}
    storage = None
    try:
        storage = await build_storage(settings)
        registered = await register_token_users(settings, storage.users)
        app.state.token_users = {token: user.id for token, user in registered.items()}
        app.state.ticket_service = TicketService(storage.tickets)
        app.state.comment_service = CommentService(storage.comments)
        app.state.storage = storage
    except Exception:  # pragma: no cover - service initialisation best effort
        logger.exception("Storage initialisation failed; ticket routes will answer 503")
        if storage is not None:
            await storage.close()
            storage = None
    try:
        yield
    finally:
        if storage is not None:
            await storage.close()
        shutdown_tracer(tracer_provider)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.add_middleware(JSONContentTypeMiddleware)
    app.include_router(ping.router)
    app.include_router(tickets.router)
    app.include_router(comments.router)
    app.include_router(users.router)
    return app


app = create_app()

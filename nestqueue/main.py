# nestqueue/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from nestqueue.core.config import get_settings
from nestqueue.core.database import close_client, create_client, get_collection, ping
from nestqueue.core.logging import ROOT_LOGGER_NAME, configure_logging
from nestqueue.ticket.routes import register_exception_handlers
from nestqueue.ticket.routes import router as ticket_router
from nestqueue.ticket.services import TicketStore


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    if app.state.ticket_store is not None:
        yield
        return

    settings = get_settings()
    logger = configure_logging(settings)
    app.state.logger = logger

    client = create_client(settings)
    ping(client, settings.CONNECT_TIMEOUT_SECONDS, logger)
    logger.debug(
        "connected to MongoDB cluster database=%s collection=%s",
        settings.MONGO_DATABASE,
        settings.MONGO_COLLECTION,
    )
    app.state.ticket_store = TicketStore(get_collection(client, settings), logger)
    try:
        yield
    finally:
        close_client(client, logger)


def create_app(store: TicketStore | None = None, logger: logging.Logger | None = None) -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESC,
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )
    app.state.logger = logger or logging.getLogger(ROOT_LOGGER_NAME)
    app.state.ticket_store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        app.state.logger.getChild("http").info(
            "received request method=%s path=%s", request.method, request.url.path
        )
        return await call_next(request)

    # Routers
    app.include_router(ticket_router)
    register_exception_handlers(app)

    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok"}

    return app


app = create_app()

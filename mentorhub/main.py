"""
FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException

from mentorhub.api.router import api_router
from mentorhub.core.config import settings
from mentorhub.core.errors import (
    AppError,
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from mentorhub.core.logging import RequestContextMiddleware, get_logger, setup_logging
from mentorhub.infra.providers import build_push_sender, build_store
from mentorhub.infra.queue import build_cleanup_queue

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    app.state.store = build_store()
    app.state.push_sender = build_push_sender()

    try:
        app.state.cleanup_queue = build_cleanup_queue()
    except Exception as e:
        # Group deletes still work without the queue; leftovers are only logged
        logger.error("queue.cleanup.unavailable", error=str(e))
        app.state.cleanup_queue = None

    logger.info(
        "app.startup",
        env=settings.env,
        store_provider=settings.store_provider,
        push_provider=settings.push_provider,
        cleanup_queue=app.state.cleanup_queue is not None,
    )

    yield

    # Shutdown
    await app.state.store.close()
    logger.info("app.shutdown")


tags_metadata = [
    {
        "name": "connections",
        "description": "Send, accept and decline connection requests.",
    },
    {
        "name": "groups",
        "description": "Create and delete groups, manage their members.",
    },
    {
        "name": "chat",
        "description": "One-on-one and group chat channels.",
    },
    {
        "name": "devices",
        "description": "Push notification device tokens.",
    },
    {
        "name": "events",
        "description": "Change-feed events from the document store.",
    },
    {
        "name": "health",
        "description": "System health check.",
    },
]


def create_app() -> FastAPI:
    app = FastAPI(
        title="mentorhub Backend",
        description="""
mentorhub API backs the mentoring app's social features.

## Features
* **Connections**: Request, accept and decline mentor/mentee connections.
* **Groups**: Owner-managed groups with admin-controlled membership.
* **Chat**: Deterministic one-on-one channels and group channels.
* **Notifications**: Push fan-out for new messages with dead token cleanup.
""",
        version="0.1.0",
        openapi_tags=tags_metadata,
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        swagger_ui_parameters={
            "persistAuthorization": True,
            "displayRequestDuration": True
        },
        lifespan=lifespan,
    )

    # Middleware
    app.add_middleware(RequestContextMiddleware)

    # CORS Configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes
    app.include_router(api_router, prefix=settings.api_prefix)

    # Exception Handlers
    app.add_exception_handler(AppError, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    return app


app = create_app()

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build a fresh app and override its dependencies.
"""

from __future__ import annotations

from fastapi import FastAPI

from chatrooms.api.routes import health_router, messages_router, quota_router, rooms_router
from chatrooms.core.config import settings
from chatrooms.core.exception_handlers import setup_exception_handlers
from chatrooms.core.logging import configure_logging
from chatrooms.core.middleware import request_id_middleware
from chatrooms.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Chat Rooms API",
        description=(
            "Coordination core for real-time multi-room chat: room lifecycle "
            "(create, leave, delete, switch), presence tracking, a capped "
            "message log with burst and duplicate protection, and "
            "increment-first rate limiting. Room and message changes are "
            "published as events on pub/sub channels."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(rooms_router, prefix="/v1")
    app.include_router(messages_router, prefix="/v1")
    app.include_router(quota_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app

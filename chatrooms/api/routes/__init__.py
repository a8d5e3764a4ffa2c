from __future__ import annotations

from chatrooms.api.routes.health import router as health_router
from chatrooms.api.routes.messages import router as messages_router
from chatrooms.api.routes.rate_limit import router as quota_router
from chatrooms.api.routes.rooms import router as rooms_router

__all__ = ["health_router", "messages_router", "quota_router", "rooms_router"]

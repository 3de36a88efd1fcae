from __future__ import annotations

from kaji.api.routes.admin import router as admin_router
from kaji.api.routes.ai import router as ai_router
from kaji.api.routes.chat import router as chat_router
from kaji.api.routes.docs import router as docs_router
from kaji.api.routes.exploits import router as exploits_router
from kaji.api.routes.health import router as health_router
from kaji.api.routes.reports import router as reports_router
from kaji.api.routes.users import auth_router, users_router
from kaji.api.routes.versions import router as versions_router

__all__ = [
    "admin_router",
    "ai_router",
    "auth_router",
    "chat_router",
    "docs_router",
    "exploits_router",
    "health_router",
    "reports_router",
    "users_router",
    "versions_router",
]

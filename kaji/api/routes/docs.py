from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Docs"])


@router.get("/docs")
def api_index(request: Request) -> dict:
    """List the API's resource collections."""

    app_settings = request.app.state.settings.app
    prefix = app_settings.api_prefix
    return {
        "name": "Kaji ChromeOS Security Research API",
        "version": app_settings.version,
        "description": "AI-powered ChromeOS vulnerability research and analysis",
        "endpoints": {
            "auth": f"{prefix}/auth",
            "users": f"{prefix}/users",
            "exploits": f"{prefix}/exploits",
            "versions": f"{prefix}/versions",
            "reports": f"{prefix}/reports",
            "chat": f"{prefix}/chat",
            "ai": f"{prefix}/ai/chat",
            "admin": f"{prefix}/admin",
        },
        "openapi": "/openapi.json",
    }

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from kaji.api.deps import Database

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(request: Request, db: Database) -> JSONResponse:
    """Health check endpoint.

    Reports database reachability. Used by load balancers and monitoring
    systems; answers 503 when the database is unreachable.
    """

    connected = await db.test_connection()
    return JSONResponse(
        status_code=200 if connected else 503,
        content={
            "status": "healthy" if connected else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": "connected" if connected else "disconnected",
            "version": request.app.state.settings.app.version,
        },
    )

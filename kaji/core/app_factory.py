from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, collaborators, middleware, handlers,
routers) so tests can build isolated instances with their own limiter and
database gateway.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kaji.adapters.database.gateway import DatabaseGateway
from kaji.api.routes import (
    admin_router,
    ai_router,
    auth_router,
    chat_router,
    docs_router,
    exploits_router,
    health_router,
    reports_router,
    users_router,
    versions_router,
)
from kaji.core.config import Settings, settings as default_settings
from kaji.core.exception_handlers import setup_exception_handlers
from kaji.core.logging import configure_logging
from kaji.core.middleware import (
    BodySizeLimitMiddleware,
    request_id_middleware,
    security_headers_middleware,
    unhandled_exception_middleware,
)
from kaji.core.openapi import apply_openapi_customizations
from kaji.core.rate_limit import build_rate_limiter, rate_limit_middleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    cfg: Settings = app.state.settings
    logger.info(
        "app.startup",
        extra={
            "environment": cfg.app.environment,
            "version": cfg.app.version,
            "rate_limit_enabled": app.state.rate_limiter is not None,
        },
    )
    yield
    await app.state.database.close()
    logger.info("app.shutdown")


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Middleware is registered innermost first; Starlette runs the last one
    added outermost. The resulting order for a request is: request id,
    security headers, CORS, rate limit, body size limit, unhandled exception
    translation, router.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    app = FastAPI(
        title="Kaji ChromeOS Security Research API",
        description=(
            "API for browsing ChromeOS exploits by release, submitting research "
            "reports and chatting with an AI security assistant. Protected by a "
            "per-client rate limit, security headers and a request body size cap."
        ),
        version=cfg.app.version,
        debug=cfg.app.debug,
        lifespan=lifespan,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.state.settings = cfg
    app.state.rate_limiter = build_rate_limiter(cfg.rate_limit) if cfg.rate_limit.enabled else None
    app.state.database = DatabaseGateway.from_settings(cfg.database)
    app.state.llm_client = None

    # Middleware
    app.middleware("http")(unhandled_exception_middleware)
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=cfg.app.max_body_bytes)
    app.middleware("http")(rate_limit_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.app.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
    )
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    prefix = cfg.app.api_prefix
    app.include_router(health_router)
    app.include_router(docs_router, prefix=prefix)
    app.include_router(auth_router, prefix=prefix)
    app.include_router(users_router, prefix=prefix)
    app.include_router(exploits_router, prefix=prefix)
    app.include_router(versions_router, prefix=prefix)
    app.include_router(ai_router, prefix=prefix)
    app.include_router(chat_router, prefix=prefix)
    app.include_router(reports_router, prefix=prefix)
    app.include_router(admin_router, prefix=prefix)

    # OpenAPI customizations (security scheme, tags, public paths)
    apply_openapi_customizations(app)

    return app

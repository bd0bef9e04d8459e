"""FastAPI application factory.

Main entry point for the caseload Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from caseload import __version__
from caseload.config import configure_logging, load_app_config, validate_environment
from caseload.db import init_db
from caseload.web.errors import register_exception_handlers
from caseload.web.middleware import RequestLoggingMiddleware, build_limiters
from caseload.web.routes import RESOURCE_ROUTERS, auth_router, email_router, health_router
from caseload.web.security import require_auth

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    config = load_app_config()
    configure_logging(config.server.env)
    init_db(config.db_path)

    for warning in validate_environment(config):
        logger.warning("config.warning", message=warning)
    logger.info(
        "api_startup",
        env=config.server.env,
        db_path=str(config.db_path.absolute()),
        auth_enabled=config.auth.enabled,
        rate_limit_enabled=config.rate_limit.enabled,
    )
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    config = load_app_config()

    app = FastAPI(
        title="SLP Caseload API",
        description="Caseload management API for speech-language pathologists",
        version=__version__,
        docs_url="/api-docs",
        openapi_url="/api-docs.json",
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors.origins or ["*"],
        # Browsers reject credentials with a wildcard origin
        allow_credentials=config.cors.credentials and bool(config.cors.origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    api_limiter, strict_limiter = build_limiters(config.rate_limit)
    app.state.api_limiter = api_limiter
    app.state.strict_limiter = strict_limiter

    app.include_router(health_router)
    app.include_router(auth_router, dependencies=[Depends(api_limiter)])
    for router in RESOURCE_ROUTERS:
        app.include_router(router, dependencies=[Depends(api_limiter), Depends(require_auth)])
    app.include_router(
        email_router, dependencies=[Depends(strict_limiter), Depends(require_auth)]
    )

    return app


# Default app instance for uvicorn
app = create_app()

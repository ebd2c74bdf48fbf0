"""
Tropicario Backend Application.

FastAPI application serving the community forum: accounts, sections,
threads, topics, comments and moderation.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from loguru import logger

from tropicario.api.v1 import router as api_v1_router
from tropicario.core.config import Settings, get_settings
from tropicario.core.database import Database, utcnow
from tropicario.core.errors import register_exception_handlers
from tropicario.core.log import log_requests, setup_logging
from tropicario.modules.accounts.email import EmailService, EmailTransport, build_transport


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("Starting Tropicario Backend...")

    await app.state.db.create_all()
    logger.info(f"Database initialized ({app.state.settings.environment})")

    yield

    logger.info("Shutting down Tropicario Backend...")
    await app.state.db.dispose()
    logger.info("Shutdown complete")


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    email_transport: EmailTransport | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration (environment by default)
        database: Database to use (built from settings by default)
        email_transport: Outbound email transport (chosen by settings by default)

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="""
    Tropicario Forum API

    ## Features

    - **Accounts**: Registration, email verification, password reset
    - **Forum**: Sections, threads, topics and comments
    - **Moderation**: Bans, pins, locks and moves

    ## Documentation

    - [API Docs](/docs) - Interactive Swagger UI
    - [ReDoc](/redoc) - Alternative documentation
    """,
        openapi_url=f"{settings.api_v1_prefix}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.db = database or Database.from_settings(settings)
    app.state.email = EmailService(email_transport or build_transport(settings), settings)

    register_exception_handlers(app, settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)

    # Include API router
    app.include_router(api_v1_router, prefix=settings.api_v1_prefix)

    @app.get("/api/health", tags=["System"])
    async def health_check() -> dict:
        """Health check endpoint for monitoring."""
        return {
            "success": True,
            "message": "Server is running",
            "environment": settings.environment,
            "version": settings.app_version,
            "timestamp": utcnow().isoformat(),
        }

    @app.get("/", tags=["System"])
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "api": settings.api_v1_prefix,
        }

    return app


def run() -> None:
    """Serve the app with uvicorn (``tropicario`` console script)."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "tropicario.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=5000,
        reload=settings.debug,
    )

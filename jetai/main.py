"""FastAPI main application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jetai.api.v1.router import api_router
from jetai.core.config import settings
from jetai.core.logging_config import configure_logging
from jetai.domains.chat.services.orchestrator import ChatOrchestrator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    configure_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}, debug: {settings.DEBUG}")

    if getattr(app.state, "orchestrator", None) is None:
        app.state.orchestrator = ChatOrchestrator.from_settings(settings)
    configured = [
        f"GROUP{group_id}"
        for group_id, secret in settings.credential_group_secrets.items()
        if secret
    ]
    logger.info(f"Credential groups configured: {', '.join(configured) or 'none'}")
    logger.info(f"Model provider order: {', '.join(settings.MODEL_PROVIDER_ORDER)}")

    yield

    # Shutdown
    logger.info(f"Shutting down. Final API metrics: {app.state.orchestrator.metrics.snapshot()}")


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Resilient conversational travel assistant API",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routers
    app.include_router(api_router, prefix="/api/v1")

    # Health check endpoint (for container healthchecks)
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for container orchestration."""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
        }

    return app


# Create application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "jetai.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=settings.WORKERS if not settings.DEBUG else 1,
    )

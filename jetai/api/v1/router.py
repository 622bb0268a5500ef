"""API v1 main router - aggregates all domain routers."""

from fastapi import APIRouter

from jetai.api.v1.endpoints import chat, diagnostics, health

api_router = APIRouter()

# Include health check endpoint
api_router.include_router(
    health.router,
    tags=["Health"],
)

# Include chat endpoint
api_router.include_router(
    chat.router,
    tags=["Chat"],
)

# Include operator diagnostics (admin token required)
api_router.include_router(
    diagnostics.router,
    prefix="/diagnostics",
    tags=["Diagnostics"],
)

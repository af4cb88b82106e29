"""FastAPI application for the Teams Service."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from services.teams_service.routers import (
    access_codes_router,
    athletes_router,
    internal_router,
    organizations_router,
    profiles_router,
    sports_router,
)


def create_app() -> FastAPI:
    """Create and configure the Teams Service FastAPI app."""
    settings = get_settings()
    app = FastAPI(
        title="Team Portal Teams Service",
        version="0.1.0",
        description="Organizations, profiles, sports and access codes.",
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "teams"}

    app.include_router(profiles_router)
    app.include_router(access_codes_router)
    app.include_router(sports_router)
    app.include_router(athletes_router)
    app.include_router(organizations_router)
    app.include_router(internal_router)

    return app


app = create_app()

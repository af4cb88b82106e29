"""Teams service routers package."""

from services.teams_service.routers.access_codes import router as access_codes_router
from services.teams_service.routers.athletes import router as athletes_router
from services.teams_service.routers.internal import router as internal_router
from services.teams_service.routers.organizations import (
    router as organizations_router,
)
from services.teams_service.routers.profiles import router as profiles_router
from services.teams_service.routers.sports import router as sports_router

__all__ = [
    "access_codes_router",
    "athletes_router",
    "internal_router",
    "organizations_router",
    "profiles_router",
    "sports_router",
]

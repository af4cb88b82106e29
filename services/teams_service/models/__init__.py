"""Teams Service models package.

Re-exports all models and enums so that SQLAlchemy's mapper registry sees every
model class on import and Alembic picks up the full metadata.

Model definitions are split across:
  - models/core.py          — Organization, Sport, Profile
  - models/access.py        — AccessCode
  - models/relationships.py — UserSport, CoachAthlete, OrganizationSport
  - models/analytics.py     — AnalyticsEvent
"""

from services.teams_service.models.access import AccessCode  # noqa: F401
from services.teams_service.models.analytics import AnalyticsEvent  # noqa: F401
from services.teams_service.models.core import (  # noqa: F401
    SPORTS_CATALOG,
    Organization,
    Profile,
    Sport,
)
from services.teams_service.models.enums import (  # noqa: F401
    Gender,
    OrganizationSportStatus,
    UserRole,
)
from services.teams_service.models.relationships import (  # noqa: F401
    CoachAthlete,
    OrganizationSport,
    UserSport,
)

__all__ = [
    "SPORTS_CATALOG",
    "AccessCode",
    "AnalyticsEvent",
    "CoachAthlete",
    "Gender",
    "Organization",
    "OrganizationSport",
    "OrganizationSportStatus",
    "Profile",
    "Sport",
    "UserRole",
    "UserSport",
]

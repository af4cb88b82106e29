"""Teams Service schemas package.

Schema files:
  - schemas/access_code.py  — code generation, preview, redemption
  - schemas/profile.py      — profile, session and auth hook payloads
  - schemas/sports.py       — sports catalog, user sports, rosters
  - schemas/organization.py — organization management
"""

from services.teams_service.schemas.access_code import (  # noqa: F401
    AccessCodeCreate,
    AccessCodeResponse,
    CodePreviewResponse,
    GeneratedCodeResponse,
    RecentCodeItem,
    ReconciliationResponse,
    RedeemCodeRequest,
    RedemptionResponse,
)
from services.teams_service.schemas.organization import (  # noqa: F401
    OrganizationAnalytics,
    OrganizationResponse,
    OrganizationUpdate,
)
from services.teams_service.schemas.profile import (  # noqa: F401
    AuthUserCreatedEvent,
    ProfileResponse,
    ProfileUpdate,
    RoleSelectionRequest,
    SessionResponse,
)
from services.teams_service.schemas.sports import (  # noqa: F401
    AthleteSportItem,
    AthleteStats,
    AthleteSummary,
    CoachAthletesResponse,
    CoachSportItem,
    CoachSummary,
    OrganizationSportResponse,
    SportResponse,
    UserSportCreate,
    UserSportResponse,
)

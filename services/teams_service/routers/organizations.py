"""Organization router: details, settings and analytics for admins."""

from typing import List

from fastapi import APIRouter, Depends
from services.teams_service.models import UserRole
from services.teams_service.routers._helpers import get_profile_session
from services.teams_service.schemas import (
    CoachSummary,
    OrganizationAnalytics,
    OrganizationResponse,
    OrganizationSportResponse,
    OrganizationUpdate,
)
from services.teams_service.services import organizations as organization_service
from services.teams_service.services.profiles import ProfileSession
from services.teams_service.services.sports import list_organization_sports

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.get("/me", response_model=OrganizationResponse)
async def get_my_organization(
    session: ProfileSession = Depends(get_profile_session),
):
    return await organization_service.get_organization(
        session.db, session.require_organization()
    )


@router.patch("/me", response_model=OrganizationResponse)
async def update_my_organization(
    payload: OrganizationUpdate,
    session: ProfileSession = Depends(get_profile_session),
):
    """Update organization details (admin only)."""
    session.require_role(UserRole.ADMIN)
    return await organization_service.update_organization(
        session.db,
        session.require_organization(),
        payload,
        updated_by=session.user_id,
    )


@router.get("/me/analytics", response_model=OrganizationAnalytics)
async def get_my_organization_analytics(
    session: ProfileSession = Depends(get_profile_session),
):
    session.require_role(UserRole.ADMIN)
    return await organization_service.get_organization_analytics(
        session.db, session.require_organization()
    )


@router.get("/me/sports", response_model=List[OrganizationSportResponse])
async def list_my_organization_sports(
    session: ProfileSession = Depends(get_profile_session),
):
    org_sports = await list_organization_sports(
        session.db, session.require_organization()
    )
    return [
        OrganizationSportResponse(
            sport_id=os.sport_id,
            sport_name=os.sport.name,
            status=os.status,
            created_at=os.created_at,
        )
        for os in org_sports
    ]


@router.get("/me/coaches", response_model=List[CoachSummary])
async def list_my_organization_coaches(
    session: ProfileSession = Depends(get_profile_session),
):
    """Coaches in the caller's organization with their sports (admin only)."""
    session.require_role(UserRole.ADMIN)
    return await organization_service.list_organization_coaches(
        session.db, session.require_organization()
    )

"""Coach router: the athletes a coach recruited."""

from fastapi import APIRouter, Depends
from services.teams_service.models import UserRole
from services.teams_service.routers._helpers import get_profile_session
from services.teams_service.schemas import CoachAthletesResponse
from services.teams_service.services.profiles import ProfileSession
from services.teams_service.services.sports import list_coach_athletes

router = APIRouter(prefix="/coach", tags=["coach"])


@router.get("/athletes", response_model=CoachAthletesResponse)
async def list_my_athletes(session: ProfileSession = Depends(get_profile_session)):
    """Athletes linked to the calling coach in their organization, with stats."""
    coach = session.require_role(UserRole.COACH)
    organization_id = session.require_organization()
    return await list_coach_athletes(session.db, coach.id, organization_id)

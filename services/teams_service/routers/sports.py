"""Sports router: the catalog and the caller's sports."""

import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from libs.db.session import get_async_db
from services.teams_service.models import UserSport
from services.teams_service.routers._helpers import get_profile_session
from services.teams_service.schemas import (
    SportResponse,
    UserSportCreate,
    UserSportResponse,
)
from services.teams_service.services import sports as sports_service
from services.teams_service.services.profiles import ProfileSession
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/sports", tags=["sports"])


def _user_sport_response(user_sport: UserSport) -> UserSportResponse:
    return UserSportResponse(
        sport_id=user_sport.sport_id,
        sport_name=user_sport.sport.name,
        organization_id=user_sport.organization_id,
        gender=user_sport.gender,
    )


@router.get("", response_model=List[SportResponse])
async def list_sports(db: AsyncSession = Depends(get_async_db)):
    """List the sports catalog."""
    return await sports_service.list_sports(db)


@router.get("/mine", response_model=List[UserSportResponse])
async def list_my_sports(session: ProfileSession = Depends(get_profile_session)):
    """Sports the caller plays or coaches in their current organization."""
    organization_id = session.require_organization()
    user_sports = await sports_service.list_user_sports(
        session.db, session.user_id, organization_id
    )
    return [_user_sport_response(us) for us in user_sports]


@router.post(
    "/mine", response_model=UserSportResponse, status_code=status.HTTP_201_CREATED
)
async def add_my_sport(
    payload: UserSportCreate,
    session: ProfileSession = Depends(get_profile_session),
):
    organization_id = session.require_organization()
    user_sport = await sports_service.add_user_sport(
        session.db,
        user_id=session.user_id,
        organization_id=organization_id,
        sport_id=payload.sport_id,
        gender=payload.gender,
    )
    return _user_sport_response(user_sport)


@router.delete("/mine/{sport_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_my_sport(
    sport_id: uuid.UUID,
    session: ProfileSession = Depends(get_profile_session),
):
    organization_id = session.require_organization()
    await sports_service.remove_user_sport(
        session.db,
        user_id=session.user_id,
        organization_id=organization_id,
        sport_id=sport_id,
    )

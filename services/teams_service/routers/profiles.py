"""Profile router: the caller's session view, role selection and updates."""

from fastapi import APIRouter, Depends
from libs.common.logging import get_logger
from services.teams_service.routers._helpers import get_profile_session
from services.teams_service.schemas import (
    ProfileResponse,
    ProfileUpdate,
    RoleSelectionRequest,
    SessionResponse,
)
from services.teams_service.services.profiles import (
    ProfileSession,
    select_role,
    update_profile,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=SessionResponse)
async def get_my_session(session: ProfileSession = Depends(get_profile_session)):
    """Identity plus the role and organization read from the profile row."""
    return session.as_dict()


@router.get("/me/profile", response_model=ProfileResponse)
async def get_my_profile(session: ProfileSession = Depends(get_profile_session)):
    return session.require_profile()


@router.post("/me/role", response_model=SessionResponse)
async def choose_role(
    payload: RoleSelectionRequest,
    session: ProfileSession = Depends(get_profile_session),
):
    """Set the caller's role; creates the profile if it does not exist yet."""
    await select_role(session, payload.role)
    return session.as_dict()


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    payload: ProfileUpdate,
    session: ProfileSession = Depends(get_profile_session),
):
    return await update_profile(
        session,
        full_name=payload.full_name,
        notification_preferences=payload.notification_preferences,
    )

"""Shared router dependencies for the teams service."""

from fastapi import Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.teams_service.models import Profile
from services.teams_service.services.profiles import (
    ProfileSession,
    bootstrap_profile,
)
from sqlalchemy.ext.asyncio import AsyncSession


async def get_profile_session(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> ProfileSession:
    """Build the caller's session, bootstrapping the profile on first contact."""
    profile = await db.get(Profile, current_user.user_id)
    if profile is None:
        profile = await bootstrap_profile(
            db,
            user_id=current_user.user_id,
            email=current_user.email,
            metadata=current_user.user_metadata,
        )
    return ProfileSession(db, current_user, profile)

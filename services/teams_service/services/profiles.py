"""Profile bootstrap, role selection and the per-request profile session."""

import asyncio
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.errors import NotFoundError, PermissionDeniedError, TransientStoreError
from libs.common.logging import get_logger
from libs.db.operations import insert_ignoring_conflict, transient_store_errors
from services.teams_service.models import Profile, UserRole

logger = get_logger(__name__)

FALLBACK_DISPLAY_NAME = "New User"


def derive_display_name(
    metadata: Optional[dict[str, Any]], email: Optional[str]
) -> str:
    """Pick a display name: metadata ``full_name``, else email local part."""
    full_name = (metadata or {}).get("full_name")
    if isinstance(full_name, str) and full_name.strip():
        return full_name.strip()
    if email and email.split("@")[0]:
        return email.split("@")[0]
    return FALLBACK_DISPLAY_NAME


async def _insert_profile(
    db: AsyncSession,
    *,
    user_id: str,
    email: Optional[str],
    full_name: str,
    role: Optional[UserRole] = UserRole.ATHLETE,
) -> Profile:
    with transient_store_errors("Could not create profile"):
        await insert_ignoring_conflict(
            db,
            Profile,
            {
                "id": user_id,
                "role": role,
                "full_name": full_name,
                "email": email,
                "organization_id": None,
            },
            conflict_columns=["id"],
        )
        await db.commit()
        return await db.get(Profile, user_id, populate_existing=True)


async def bootstrap_profile(
    db: AsyncSession,
    *,
    user_id: str,
    email: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> Optional[Profile]:
    """Create the minimal profile for a newly authenticated identity.

    Idempotent: an existing profile is returned untouched, and a concurrent
    duplicate insert is ignored. Transient failures are retried a bounded number
    of times; after that a row with the placeholder name is attempted. If even
    that fails the error is logged and None is returned, since this runs out of
    band relative to sign-up.
    """
    settings = get_settings()
    max_attempts = settings.PROFILE_BOOTSTRAP_MAX_ATTEMPTS
    delay = settings.PROFILE_BOOTSTRAP_RETRY_DELAY_SECONDS

    full_name = derive_display_name(metadata, email)

    for attempt in range(1, max_attempts + 1):
        try:
            with transient_store_errors("Could not load profile"):
                existing = await db.get(Profile, user_id)
            if existing is not None:
                return existing
            profile = await _insert_profile(
                db, user_id=user_id, email=email, full_name=full_name
            )
            logger.info(
                "Bootstrapped profile",
                extra={"extra_fields": {"user_id": user_id, "attempt": attempt}},
            )
            return profile
        except TransientStoreError as exc:
            await db.rollback()
            logger.warning(
                "Profile bootstrap attempt %d/%d failed for %s: %s",
                attempt,
                max_attempts,
                user_id,
                exc.__cause__ or exc,
            )
            if attempt < max_attempts:
                await asyncio.sleep(delay)

    logger.error(
        "Profile bootstrap failed after %d attempts; inserting fallback row for %s",
        max_attempts,
        user_id,
    )
    try:
        return await _insert_profile(
            db, user_id=user_id, email=email, full_name=FALLBACK_DISPLAY_NAME
        )
    except (TransientStoreError, IntegrityError):
        await db.rollback()
        logger.exception("Fallback profile creation failed for %s", user_id)
        return None


class ProfileSession:
    """The caller's identity and profile for one request.

    Built by the ``get_profile_session`` dependency and passed explicitly to the
    code that needs role or organization. ``refresh`` re-reads the profile row
    after anything that changes it.
    """

    def __init__(self, db: AsyncSession, user: AuthUser, profile: Optional[Profile]):
        self.db = db
        self.user = user
        self.profile = profile

    @property
    def user_id(self) -> str:
        return self.user.user_id

    @property
    def email(self) -> Optional[str]:
        return self.user.email

    @property
    def role(self) -> Optional[UserRole]:
        return self.profile.role if self.profile else None

    @property
    def organization_id(self):
        return self.profile.organization_id if self.profile else None

    @property
    def full_name(self) -> Optional[str]:
        return self.profile.full_name if self.profile else None

    async def refresh(self) -> "ProfileSession":
        self.profile = await self.db.get(Profile, self.user_id, populate_existing=True)
        return self

    def require_profile(self) -> Profile:
        if self.profile is None:
            raise NotFoundError("Profile not found")
        return self.profile

    def require_role(self, *roles: UserRole) -> Profile:
        profile = self.require_profile()
        if profile.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise PermissionDeniedError(f"This action requires one of: {allowed}")
        return profile

    def require_organization(self):
        if self.organization_id is None:
            raise NotFoundError("Organization not found")
        return self.organization_id

    def as_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "role": self.role,
            "organization_id": self.organization_id,
            "full_name": self.full_name,
        }


async def select_role(session: ProfileSession, role: UserRole) -> Profile:
    """Set the caller's role, creating the profile if it is missing."""
    db = session.db
    profile = await db.get(Profile, session.user_id, populate_existing=True)
    if profile is None:
        full_name = derive_display_name(None, session.email)
        profile = await _insert_profile(
            db,
            user_id=session.user_id,
            email=session.email,
            full_name=full_name,
            role=role,
        )
    if profile.role != role:
        profile.role = role
        await db.commit()

    logger.info(
        "Role selected",
        extra={"extra_fields": {"user_id": session.user_id, "role": role.value}},
    )
    await session.refresh()
    return session.profile


async def update_profile(
    session: ProfileSession,
    *,
    full_name: Optional[str] = None,
    notification_preferences: Optional[dict[str, Any]] = None,
) -> Profile:
    profile = session.require_profile()
    if full_name is not None:
        profile.full_name = full_name.strip()
    if notification_preferences is not None:
        profile.notification_preferences = notification_preferences
    await session.db.commit()
    await session.refresh()
    return session.profile

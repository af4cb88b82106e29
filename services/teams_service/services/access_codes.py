"""Access code issuing, validation, redemption and relationship materialization.

Redemption is a short sequence of statements:

1. validate: look the code up by text, reject unknown, consumed or
   wrong-role codes;
2. consume: conditional update that sets ``used_at``/``used_by`` only while
   ``used_at`` is still NULL, committed on its own;
3. materialize: insert the coach-athlete / user-sport rows (or bind the
   profile to the organization), ignoring uniqueness conflicts.

Step 3 can fail after step 2 committed. A later attempt by the same user sees
``AlreadyUsedError`` with ``used_by`` equal to the caller and resumes at step 3
from the code's stored metadata.
"""

import re
import secrets
import time
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.errors import (
    AlreadyUsedError,
    InputValidationError,
    NotFoundError,
    PermissionDeniedError,
    RoleMismatchError,
    TransientStoreError,
)
from libs.common.logging import get_logger
from libs.db.operations import (
    compare_and_set,
    insert_ignoring_conflict,
    transient_store_errors,
)
from services.teams_service.models import (
    AccessCode,
    CoachAthlete,
    Gender,
    Profile,
    Sport,
    UserRole,
    UserSport,
)
from services.teams_service.services.analytics import log_event
from services.teams_service.services.profiles import derive_display_name

logger = get_logger(__name__)

# No 0/O or 1/I so codes survive being read aloud or retyped
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_PATTERN = re.compile(r"^[A-Z0-9]+(?:-[A-Z0-9]+)*$")
MAX_CODE_LENGTH = 64

_BASE36_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

# Which code roles each issuer role may create
ISSUABLE_ROLES = {
    UserRole.ADMIN: {UserRole.ADMIN, UserRole.COACH, UserRole.ATHLETE},
    UserRole.COACH: {UserRole.ATHLETE},
}


# ---------------------------------------------------------------------------
# Code text
# ---------------------------------------------------------------------------


def _random_chars(length: int) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits)) or "0"


def generate_readable_code() -> str:
    """Coach-issued format: ``XX-XXX-XX``."""
    return f"{_random_chars(2)}-{_random_chars(3)}-{_random_chars(2)}"


def generate_admin_code(now_ms: Optional[int] = None) -> str:
    """Admin-issued format: ``XX-TTT-XX`` with TTT from the millisecond clock."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    stamp = _to_base36(now_ms)[-3:].rjust(3, "0")
    random_part = _random_chars(4)
    return f"{random_part[:2]}-{stamp}-{random_part[2:]}"


def normalize_code(code_text: Optional[str]) -> str:
    """Trim and upper-case user input; reject malformed codes before any query."""
    code = (code_text or "").strip().upper()
    if not code:
        raise InputValidationError("Please enter an access code")
    if len(code) > MAX_CODE_LENGTH or not CODE_PATTERN.match(code):
        raise InputValidationError("Access code format is invalid")
    return code


def build_share_message(
    code: str, sport_name: Optional[str] = None, gender: Optional[Gender] = None
) -> tuple[str, str]:
    """Return ``(message, join_link)`` for sharing a code."""
    sport_text = f" for {sport_name}" if sport_name else ""
    gender_text = ""
    if gender is not None:
        gender_text = " (Men's)" if gender == Gender.MALE else " (Women's)"
    frontend_url = get_settings().FRONTEND_URL.rstrip("/")
    link = f"{frontend_url}/join?code={code}"
    message = f"Here's your access code{sport_text}{gender_text}: {code}"
    return message, link


# ---------------------------------------------------------------------------
# Grants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CodeGrant:
    """What a code binds its redeemer to, as read at validation time."""

    code_id: uuid.UUID
    code: str
    role: UserRole
    organization_id: Optional[uuid.UUID]
    sport_id: Optional[uuid.UUID]
    gender: Optional[Gender]
    issued_by: str

    @classmethod
    def from_model(cls, access_code: AccessCode) -> "CodeGrant":
        return cls(
            code_id=access_code.id,
            code=access_code.code,
            role=UserRole(access_code.role),
            organization_id=access_code.organization_id,
            sport_id=access_code.sport_id,
            gender=Gender(access_code.gender) if access_code.gender else None,
            issued_by=access_code.created_by,
        )


@dataclass(frozen=True)
class Redemption:
    grant: CodeGrant
    user_id: str
    resumed: bool = False

    @property
    def coach_id(self) -> Optional[str]:
        return self.grant.issued_by if self.grant.role == UserRole.ATHLETE else None


# ---------------------------------------------------------------------------
# Issuer
# ---------------------------------------------------------------------------


async def issue_code(
    db: AsyncSession,
    *,
    issuer: Profile,
    role: UserRole,
    sport_id: Optional[uuid.UUID] = None,
    gender: Optional[Gender] = None,
    organization_id: Optional[uuid.UUID] = None,
) -> AccessCode:
    """Create an unused access code on behalf of ``issuer``."""
    allowed = ISSUABLE_ROLES.get(issuer.role)
    if not allowed:
        raise PermissionDeniedError("Only coaches and admins can generate access codes")
    if role not in allowed:
        raise PermissionDeniedError(
            f"{issuer.role.value.capitalize()}s cannot generate {role.value} codes"
        )

    organization_id = organization_id or issuer.organization_id
    if organization_id is None:
        raise NotFoundError("Organization not found")

    if role == UserRole.ADMIN:
        sport_id, gender = None, None
    else:
        if sport_id is None:
            raise InputValidationError("Please select a sport")
        if gender is None:
            raise InputValidationError("Please select a gender")
        if await db.get(Sport, sport_id) is None:
            raise NotFoundError("Sport not found")

    generate = (
        generate_admin_code if issuer.role == UserRole.ADMIN else generate_readable_code
    )
    max_attempts = get_settings().ACCESS_CODE_MAX_GENERATION_ATTEMPTS

    with transient_store_errors("Could not generate access code"):
        for _ in range(max_attempts):
            code = generate()
            created = await insert_ignoring_conflict(
                db,
                AccessCode,
                {
                    "code": code,
                    "role": role,
                    "organization_id": organization_id,
                    "sport_id": sport_id,
                    "gender": gender,
                    "created_by": issuer.id,
                },
                conflict_columns=["code"],
            )
            if created:
                break
            logger.info("Generated code %s collided with an existing code", code)
        else:
            await db.rollback()
            raise TransientStoreError("Could not generate a unique access code")

        await log_event(
            db,
            organization_id,
            "access_code_generated",
            {"role": role.value, "issued_by": issuer.id},
        )
        await db.commit()

        result = await db.execute(
            select(AccessCode)
            .where(AccessCode.code == code)
            .execution_options(populate_existing=True)
        )
        access_code = result.scalar_one()

    logger.info(
        "Access code issued",
        extra={
            "extra_fields": {
                "code": code,
                "role": role.value,
                "issued_by": issuer.id,
                "organization_id": str(organization_id),
            }
        },
    )
    return access_code


async def list_recent_codes(
    db: AsyncSession,
    issuer_id: str,
    *,
    role: Optional[UserRole] = None,
    limit: Optional[int] = None,
) -> list[AccessCode]:
    limit = limit or get_settings().RECENT_CODES_LIMIT
    query = select(AccessCode).where(AccessCode.created_by == issuer_id)
    if role is not None:
        query = query.where(AccessCode.role == role)
    result = await db.execute(
        query.order_by(AccessCode.created_at.desc()).limit(limit)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


async def _load_code(db: AsyncSession, code_text: str) -> AccessCode:
    code = normalize_code(code_text)
    with transient_store_errors("Could not look up access code"):
        # populate_existing: never trust a copy already in this session
        result = await db.execute(
            select(AccessCode)
            .where(AccessCode.code == code)
            .execution_options(populate_existing=True)
        )
        access_code = result.scalar_one_or_none()
    if access_code is None:
        raise NotFoundError("Invalid access code")
    return access_code


async def validate_code(
    db: AsyncSession, code_text: str, *, expected_role: UserRole
) -> CodeGrant:
    """Check that ``code_text`` names an unused code granting ``expected_role``."""
    access_code = await _load_code(db, code_text)
    grant = CodeGrant.from_model(access_code)

    if access_code.used_at is not None:
        raise AlreadyUsedError(used_by=access_code.used_by, grant=grant)
    if grant.role != expected_role:
        raise RoleMismatchError(f"This code is not valid for {expected_role.value}s")
    return grant


async def preview_code(
    db: AsyncSession, code_text: str, *, user_id: str, expected_role: UserRole
) -> dict:
    """Validate a code and describe what redeeming it would do."""
    grant = await validate_code(db, code_text, expected_role=expected_role)
    access_code = await db.get(AccessCode, grant.code_id)
    issuer = await db.get(Profile, grant.issued_by)

    already_connected = False
    if grant.role == UserRole.ATHLETE and grant.sport_id and grant.organization_id:
        result = await db.execute(
            select(CoachAthlete.id).where(
                CoachAthlete.athlete_id == user_id,
                CoachAthlete.coach_id == grant.issued_by,
                CoachAthlete.sport_id == grant.sport_id,
                CoachAthlete.organization_id == grant.organization_id,
            )
        )
        already_connected = result.first() is not None

    return {
        "code": grant.code,
        "role": grant.role,
        "organization_id": grant.organization_id,
        "organization_name": (
            access_code.organization.name if access_code.organization else None
        ),
        "sport_id": grant.sport_id,
        "sport_name": access_code.sport.name if access_code.sport else None,
        "gender": grant.gender,
        "issued_by": grant.issued_by,
        "issuer_name": issuer.full_name if issuer else None,
        "already_connected": already_connected,
    }


# ---------------------------------------------------------------------------
# Redemption
# ---------------------------------------------------------------------------


async def consume_code(db: AsyncSession, grant: CodeGrant, user_id: str) -> bool:
    """Mark the code used by ``user_id`` if nobody has yet. True if this call won."""
    return await compare_and_set(
        db,
        AccessCode,
        criteria=[AccessCode.id == grant.code_id],
        guard=AccessCode.used_at,
        values={"used_at": utc_now(), "used_by": user_id},
    )


async def redeem_code(
    db: AsyncSession,
    code_text: str,
    *,
    user_id: str,
    expected_role: UserRole,
    email: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> Redemption:
    """Consume a code for ``user_id`` and create what it grants.

    Raises ``AlreadyUsedError`` when someone else consumed the code, including
    when this call lost a race at the conditional update. When the caller is
    the recorded consumer, only the relationship step is re-run.

    ``email`` and ``metadata`` name the profile if redemption has to create it.
    """
    try:
        grant = await validate_code(db, code_text, expected_role=expected_role)
    except AlreadyUsedError as exc:
        if (
            exc.used_by == user_id
            and exc.grant is not None
            and exc.grant.role == expected_role
        ):
            logger.info(
                "Resuming redemption of %s for %s", exc.grant.code, user_id
            )
            await materialize_relationships(
                db, exc.grant, user_id, email=email, metadata=metadata
            )
            return Redemption(grant=exc.grant, user_id=user_id, resumed=True)
        raise

    with transient_store_errors("Could not redeem access code"):
        won = await consume_code(db, grant, user_id)
        if not won:
            await db.rollback()
            logger.info(
                "Lost redemption race",
                extra={"extra_fields": {"code": grant.code, "user_id": user_id}},
            )
            raise AlreadyUsedError()
        await db.commit()

    logger.info(
        "Access code consumed",
        extra={
            "extra_fields": {
                "code": grant.code,
                "role": grant.role.value,
                "user_id": user_id,
            }
        },
    )
    await materialize_relationships(
        db, grant, user_id, email=email, metadata=metadata
    )
    return Redemption(grant=grant, user_id=user_id)


# ---------------------------------------------------------------------------
# Relationship materialization
#
# Each helper returns True when it wrote or changed a row, so a repeated run
# over finished work can be told apart from one that completed it.
# ---------------------------------------------------------------------------


async def _attach_profile(
    db: AsyncSession,
    user_id: str,
    *,
    organization_id: Optional[uuid.UUID],
    role: UserRole,
    overwrite: bool,
    email: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> bool:
    """Bind the profile to the code's organization and role.

    With ``overwrite=False`` only unset fields are filled in. A missing profile
    is created and named the way bootstrap names it.
    """
    profile = await db.get(Profile, user_id, populate_existing=True)
    if profile is None:
        return await insert_ignoring_conflict(
            db,
            Profile,
            {
                "id": user_id,
                "role": role,
                "organization_id": organization_id,
                "full_name": derive_display_name(metadata, email),
                "email": email,
            },
            conflict_columns=["id"],
        )

    changed = False
    if (overwrite or profile.organization_id is None) and (
        profile.organization_id != organization_id
    ):
        profile.organization_id = organization_id
        changed = True
    if (overwrite or profile.role is None) and profile.role != role:
        profile.role = role
        changed = True
    return changed


async def _add_user_sport(db: AsyncSession, grant: CodeGrant, user_id: str) -> bool:
    return await insert_ignoring_conflict(
        db,
        UserSport,
        {
            "user_id": user_id,
            "sport_id": grant.sport_id,
            "organization_id": grant.organization_id,
            "gender": grant.gender,
        },
        conflict_columns=["user_id", "sport_id", "organization_id"],
    )


async def _link_athlete(
    db: AsyncSession, grant: CodeGrant, user_id: str, **identity
) -> bool:
    if grant.sport_id is None or grant.organization_id is None:
        raise InputValidationError("Athlete code is missing its sport or organization")

    linked = await insert_ignoring_conflict(
        db,
        CoachAthlete,
        {
            "coach_id": grant.issued_by,
            "athlete_id": user_id,
            "sport_id": grant.sport_id,
            "organization_id": grant.organization_id,
        },
        conflict_columns=["coach_id", "athlete_id", "sport_id", "organization_id"],
    )
    sport_added = await _add_user_sport(db, grant, user_id)
    attached = await _attach_profile(
        db,
        user_id,
        organization_id=grant.organization_id,
        role=UserRole.ATHLETE,
        overwrite=False,
        **identity,
    )
    return linked or sport_added or attached


async def _bind_membership(
    db: AsyncSession, grant: CodeGrant, user_id: str, **identity
) -> bool:
    attached = await _attach_profile(
        db,
        user_id,
        organization_id=grant.organization_id,
        role=grant.role,
        overwrite=True,
        **identity,
    )
    sport_added = False
    if grant.sport_id is not None and grant.organization_id is not None:
        sport_added = await _add_user_sport(db, grant, user_id)
    return attached or sport_added


async def materialize_relationships(
    db: AsyncSession,
    grant: CodeGrant,
    user_id: str,
    *,
    email: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> bool:
    """Create the rows a redeemed code grants. Safe to repeat.

    Athlete codes link the issuing coach to the athlete and add the sport;
    coach and admin codes bind the profile to the organization. The
    ``access_code_redeemed`` event is written in the same transaction and only
    when something changed, so it is recorded once per redemption. Returns
    True when this call did that work.

    On failure the code stays consumed and the error is raised so the caller
    can retry.
    """
    identity = {"email": email, "metadata": metadata}
    try:
        with transient_store_errors(
            "Your code was accepted but joining the team failed. Please try again.",
            resumable=True,
        ):
            if grant.role == UserRole.ATHLETE:
                changed = await _link_athlete(db, grant, user_id, **identity)
            else:
                changed = await _bind_membership(db, grant, user_id, **identity)

            if changed:
                await log_event(
                    db,
                    grant.organization_id,
                    "access_code_redeemed",
                    {
                        "role": grant.role.value,
                        "code": grant.code,
                        "user_id": user_id,
                    },
                )
            await db.commit()
    except (TransientStoreError, IntegrityError):
        await db.rollback()
        logger.error(
            "Relationship creation failed after code consumption",
            extra={"extra_fields": {"code": grant.code, "user_id": user_id}},
            exc_info=True,
        )
        raise
    return changed

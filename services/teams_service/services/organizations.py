"""Organization details and analytics."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from libs.common.errors import NotFoundError
from libs.common.logging import get_logger
from services.teams_service.models import Organization, Profile, UserRole, UserSport
from services.teams_service.schemas import OrganizationUpdate
from services.teams_service.services.analytics import log_event, organization_counts

logger = get_logger(__name__)


async def get_organization(db: AsyncSession, organization_id: uuid.UUID) -> Organization:
    organization = await db.get(Organization, organization_id)
    if organization is None:
        raise NotFoundError("Organization not found")
    return organization


async def update_organization(
    db: AsyncSession,
    organization_id: uuid.UUID,
    data: OrganizationUpdate,
    *,
    updated_by: str,
) -> Organization:
    organization = await get_organization(db, organization_id)

    organization.name = data.name
    organization.email = [str(e) for e in data.email]
    organization.phone = [p.strip() for p in data.phone if p.strip()]
    organization.address = data.address
    organization.website = data.website

    await log_event(
        db, organization_id, "organization_updated", {"updated_by": updated_by}
    )
    await db.commit()
    await db.refresh(organization)

    logger.info("Organization %s updated by %s", organization_id, updated_by)
    return organization


async def get_organization_analytics(
    db: AsyncSession, organization_id: uuid.UUID
) -> dict:
    await get_organization(db, organization_id)
    counts = await organization_counts(db, organization_id)
    return {"organization_id": organization_id, **counts}


async def list_organization_coaches(
    db: AsyncSession, organization_id: uuid.UUID
) -> list[dict]:
    """Coaches in the organization, each with the sports and genders they coach."""
    result = await db.execute(
        select(Profile)
        .where(
            Profile.organization_id == organization_id,
            Profile.role == UserRole.COACH,
        )
        .order_by(Profile.created_at)
        .execution_options(populate_existing=True)
    )
    coaches = list(result.scalars().all())

    sports_by_user: dict[str, list[dict]] = {coach.id: [] for coach in coaches}
    if coaches:
        user_sports = await db.execute(
            select(UserSport)
            .where(
                UserSport.organization_id == organization_id,
                UserSport.user_id.in_(list(sports_by_user)),
            )
            .order_by(UserSport.created_at)
        )
        for user_sport in user_sports.scalars().all():
            sports_by_user[user_sport.user_id].append(
                {
                    "sport_id": user_sport.sport_id,
                    "name": user_sport.sport.name,
                    "gender": user_sport.gender,
                }
            )

    return [
        {
            "id": coach.id,
            "full_name": coach.full_name,
            "email": coach.email,
            "created_at": coach.created_at,
            "sports": sports_by_user[coach.id],
        }
        for coach in coaches
    ]

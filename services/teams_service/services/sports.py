"""Sports catalog, user sports and the coach's athlete roster."""

import uuid
from datetime import timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from libs.common.datetime_utils import as_utc, utc_now
from libs.common.errors import NotFoundError
from libs.common.logging import get_logger
from libs.db.operations import insert_ignoring_conflict, transient_store_errors
from services.teams_service.models import (
    SPORTS_CATALOG,
    CoachAthlete,
    Gender,
    OrganizationSport,
    Profile,
    Sport,
    UserSport,
)

logger = get_logger(__name__)


async def list_sports(db: AsyncSession) -> list[Sport]:
    result = await db.execute(select(Sport).order_by(Sport.name))
    return list(result.scalars().all())


async def seed_sports_catalog(db: AsyncSession) -> int:
    """Insert any missing catalog sports. Returns how many were added."""
    added = 0
    for name in SPORTS_CATALOG:
        if await insert_ignoring_conflict(
            db, Sport, {"name": name}, conflict_columns=["name"]
        ):
            added += 1
    await db.commit()
    return added


async def list_user_sports(
    db: AsyncSession, user_id: str, organization_id: uuid.UUID
) -> list[UserSport]:
    result = await db.execute(
        select(UserSport)
        .where(
            UserSport.user_id == user_id,
            UserSport.organization_id == organization_id,
        )
        .order_by(UserSport.created_at)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def add_user_sport(
    db: AsyncSession,
    *,
    user_id: str,
    organization_id: uuid.UUID,
    sport_id: uuid.UUID,
    gender: Optional[Gender] = None,
) -> UserSport:
    """Add a sport to the user's list. Adding it twice is a no-op."""
    if await db.get(Sport, sport_id) is None:
        raise NotFoundError("Sport not found")

    with transient_store_errors("Could not add sport"):
        await insert_ignoring_conflict(
            db,
            UserSport,
            {
                "user_id": user_id,
                "sport_id": sport_id,
                "organization_id": organization_id,
                "gender": gender,
            },
            conflict_columns=["user_id", "sport_id", "organization_id"],
        )
        await db.commit()

    result = await db.execute(
        select(UserSport)
        .where(
            UserSport.user_id == user_id,
            UserSport.sport_id == sport_id,
            UserSport.organization_id == organization_id,
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def remove_user_sport(
    db: AsyncSession,
    *,
    user_id: str,
    organization_id: uuid.UUID,
    sport_id: uuid.UUID,
) -> None:
    result = await db.execute(
        delete(UserSport).where(
            UserSport.user_id == user_id,
            UserSport.sport_id == sport_id,
            UserSport.organization_id == organization_id,
        )
    )
    if result.rowcount == 0:
        await db.rollback()
        raise NotFoundError("Sport not found in your list")
    await db.commit()
    logger.info("Removed sport %s for user %s", sport_id, user_id)


async def list_organization_sports(
    db: AsyncSession, organization_id: uuid.UUID
) -> list[OrganizationSport]:
    result = await db.execute(
        select(OrganizationSport)
        .where(OrganizationSport.organization_id == organization_id)
        .order_by(OrganizationSport.created_at)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_coach_athletes(
    db: AsyncSession, coach_id: str, organization_id: uuid.UUID
) -> dict:
    """Athletes linked to ``coach_id`` in an organization, with join stats.

    An athlete linked through several sports is listed once with each sport.
    ``active_this_week`` and ``recent_joins`` count athletes whose first link to
    this coach is within 7 and 30 days.
    """
    result = await db.execute(
        select(CoachAthlete, Profile)
        .outerjoin(Profile, Profile.id == CoachAthlete.athlete_id)
        .where(
            CoachAthlete.coach_id == coach_id,
            CoachAthlete.organization_id == organization_id,
        )
        .order_by(CoachAthlete.created_at.desc())
    )
    rows = result.all()

    sport_rows = await db.execute(
        select(UserSport).where(
            UserSport.organization_id == organization_id,
            UserSport.user_id.in_({link.athlete_id for link, _ in rows}),
        )
    )
    genders = {
        (us.user_id, us.sport_id): us.gender for us in sport_rows.scalars().all()
    }
    sport_names = {sport.id: sport.name for sport in await list_sports(db)}

    athletes: dict[str, dict] = {}
    for link, profile in rows:
        entry = athletes.get(link.athlete_id)
        joined_at = as_utc(link.created_at)
        if entry is None:
            entry = athletes[link.athlete_id] = {
                "id": link.athlete_id,
                "full_name": profile.full_name if profile else None,
                "email": profile.email if profile else None,
                "created_at": joined_at,
                "sports": [],
            }
        entry["created_at"] = min(entry["created_at"], joined_at)
        entry["sports"].append(
            {
                "name": sport_names.get(link.sport_id, "Unknown"),
                "gender": genders.get((link.athlete_id, link.sport_id)),
            }
        )

    now = utc_now()
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)
    return {
        "athletes": list(athletes.values()),
        "stats": {
            "total_athletes": len(athletes),
            "active_this_week": sum(
                1 for a in athletes.values() if a["created_at"] >= week_ago
            ),
            "recent_joins": sum(
                1 for a in athletes.values() if a["created_at"] >= month_ago
            ),
        },
    }

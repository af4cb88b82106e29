"""Organization analytics: event log and membership counts."""

import uuid
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.teams_service.models import AnalyticsEvent, Profile, UserRole


async def log_event(
    db: AsyncSession,
    organization_id: Optional[uuid.UUID],
    event_type: str,
    event_data: Optional[dict[str, Any]] = None,
) -> AnalyticsEvent:
    """Record an analytics event in the caller's transaction (no commit)."""
    event = AnalyticsEvent(
        organization_id=organization_id,
        event_type=event_type,
        event_data=event_data or {},
    )
    db.add(event)
    return event


async def organization_counts(
    db: AsyncSession, organization_id: uuid.UUID
) -> dict[str, int]:
    """Count profiles in an organization, overall and per role."""
    result = await db.execute(
        select(Profile.role, func.count())
        .where(Profile.organization_id == organization_id)
        .group_by(Profile.role)
    )
    by_role = {role: count for role, count in result.all()}
    return {
        "total_users": sum(by_role.values()),
        "total_athletes": by_role.get(UserRole.ATHLETE, 0),
        "total_coaches": by_role.get(UserRole.COACH, 0),
    }

"""Repair consumed codes whose relationship step never completed."""

from dataclasses import dataclass

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from libs.common.errors import TransientStoreError
from libs.common.logging import get_logger
from services.teams_service.models import (
    AccessCode,
    CoachAthlete,
    Profile,
    UserRole,
    UserSport,
)
from services.teams_service.services.access_codes import (
    CodeGrant,
    materialize_relationships,
)

logger = get_logger(__name__)


@dataclass
class ReconciliationReport:
    scanned: int = 0
    repaired: int = 0
    failed: int = 0


def _orphaned_athlete_codes():
    coach_link = and_(
        CoachAthlete.coach_id == AccessCode.created_by,
        CoachAthlete.athlete_id == AccessCode.used_by,
        CoachAthlete.sport_id == AccessCode.sport_id,
        CoachAthlete.organization_id == AccessCode.organization_id,
    )
    sport_link = and_(
        UserSport.user_id == AccessCode.used_by,
        UserSport.sport_id == AccessCode.sport_id,
        UserSport.organization_id == AccessCode.organization_id,
    )
    return (
        select(AccessCode)
        .outerjoin(CoachAthlete, coach_link)
        .outerjoin(UserSport, sport_link)
        .where(
            AccessCode.used_at.is_not(None),
            AccessCode.role == UserRole.ATHLETE,
            or_(CoachAthlete.id.is_(None), UserSport.id.is_(None)),
        )
    )


def _orphaned_membership_codes():
    return (
        select(AccessCode)
        .outerjoin(Profile, Profile.id == AccessCode.used_by)
        .where(
            AccessCode.used_at.is_not(None),
            AccessCode.role.in_([UserRole.COACH, UserRole.ADMIN]),
            or_(Profile.id.is_(None), Profile.organization_id.is_(None)),
        )
    )


async def reconcile_consumed_codes(db: AsyncSession) -> ReconciliationReport:
    """Re-run materialization for consumed codes missing their relationships.

    Athlete codes are orphaned when the coach-athlete or user-sport row is
    absent. Coach and admin codes are orphaned when the redeemer has no
    profile or no organization. Each repair commits on its own, so one bad code
    does not block the rest.
    """
    report = ReconciliationReport()

    pending = []
    for query in (_orphaned_athlete_codes(), _orphaned_membership_codes()):
        result = await db.execute(query)
        pending.extend(
            (CodeGrant.from_model(code), code.used_by)
            for code in result.scalars().unique().all()
        )

    for grant, user_id in pending:
        report.scanned += 1
        try:
            await materialize_relationships(db, grant, user_id)
            report.repaired += 1
        except (TransientStoreError, IntegrityError):
            report.failed += 1

    logger.info(
        "Reconciliation complete",
        extra={
            "extra_fields": {
                "scanned": report.scanned,
                "repaired": report.repaired,
                "failed": report.failed,
            }
        },
    )
    return report


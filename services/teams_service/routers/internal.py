"""Internal endpoints for the auth provider and operators.

The user-created hook is authenticated by shared secret; the reconciliation
endpoint requires a service_role JWT.
"""

from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status
from libs.auth.dependencies import require_service_role, verify_auth_hook
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db, get_session_factory
from services.teams_service.schemas import (
    AuthUserCreatedEvent,
    ReconciliationResponse,
)
from services.teams_service.services.profiles import bootstrap_profile
from services.teams_service.services.reconciliation import reconcile_consumed_codes
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)
router = APIRouter(prefix="/internal", tags=["internal"])


async def _bootstrap_in_background(
    session_factory: async_sessionmaker[AsyncSession],
    user_id: str,
    email: Optional[str],
    metadata: dict[str, Any],
) -> None:
    async with session_factory() as db:
        profile = await bootstrap_profile(
            db, user_id=user_id, email=email, metadata=metadata
        )
    if profile is None:
        logger.error("Profile bootstrap gave up for %s", user_id)


@router.post(
    "/auth-hooks/user-created",
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[Depends(verify_auth_hook)],
)
async def on_user_created(
    event: AuthUserCreatedEvent,
    background_tasks: BackgroundTasks,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    """Create the new identity's profile out of band of sign-up."""
    background_tasks.add_task(
        _bootstrap_in_background,
        session_factory,
        event.id,
        event.email,
        event.raw_user_meta_data,
    )
    return {"status": "accepted", "user_id": event.id}


@router.post("/reconcile-redemptions", response_model=ReconciliationResponse)
async def reconcile_redemptions(
    _: AuthUser = Depends(require_service_role),
    db: AsyncSession = Depends(get_async_db),
):
    """Repair consumed codes whose relationships were never created."""
    report = await reconcile_consumed_codes(db)
    return ReconciliationResponse(
        scanned=report.scanned, repaired=report.repaired, failed=report.failed
    )

"""Access code router: generation, preview and the three redemption flows."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from libs.common.logging import get_logger
from libs.common.rate_limit import codegen_limit, redeem_limit
from services.teams_service.models import UserRole
from services.teams_service.routers._helpers import get_profile_session
from services.teams_service.schemas import (
    AccessCodeCreate,
    AccessCodeResponse,
    CodePreviewResponse,
    GeneratedCodeResponse,
    RecentCodeItem,
    RedeemCodeRequest,
    RedemptionResponse,
)
from services.teams_service.services import access_codes as access_code_service
from services.teams_service.services.access_codes import Redemption
from services.teams_service.services.profiles import ProfileSession

logger = get_logger(__name__)
router = APIRouter(prefix="/access-codes", tags=["access-codes"])


def _redemption_response(redemption: Redemption) -> RedemptionResponse:
    grant = redemption.grant
    return RedemptionResponse(
        code=grant.code,
        role=grant.role,
        organization_id=grant.organization_id,
        sport_id=grant.sport_id,
        gender=grant.gender,
        coach_id=redemption.coach_id,
        resumed=redemption.resumed,
    )


async def _redeem(
    session: ProfileSession, code: str, expected_role: UserRole
) -> RedemptionResponse:
    redemption = await access_code_service.redeem_code(
        session.db,
        code,
        user_id=session.user_id,
        expected_role=expected_role,
        email=session.email,
        metadata=session.user.user_metadata,
    )
    await session.refresh()
    return _redemption_response(redemption)


# ============================================================================
# GENERATION
# ============================================================================


@router.post(
    "", response_model=GeneratedCodeResponse, status_code=status.HTTP_201_CREATED
)
@codegen_limit
async def generate_access_code(
    request: Request,
    payload: AccessCodeCreate,
    session: ProfileSession = Depends(get_profile_session),
):
    """Generate a single-use access code for the caller's organization."""
    issuer = session.require_profile()
    access_code = await access_code_service.issue_code(
        session.db,
        issuer=issuer,
        role=payload.role,
        sport_id=payload.sport_id,
        gender=payload.gender,
    )
    message, link = access_code_service.build_share_message(
        access_code.code,
        access_code.sport.name if access_code.sport else None,
        access_code.gender,
    )
    return GeneratedCodeResponse(
        **AccessCodeResponse.model_validate(access_code).model_dump(),
        share_message=message,
        join_link=link,
    )


@router.get("/recent", response_model=List[RecentCodeItem])
async def list_recent_access_codes(
    role: Optional[UserRole] = Query(None),
    limit: int = Query(5, ge=1, le=50),
    session: ProfileSession = Depends(get_profile_session),
):
    """The caller's most recently generated codes."""
    codes = await access_code_service.list_recent_codes(
        session.db, session.user_id, role=role, limit=limit
    )
    return [
        RecentCodeItem(
            code=code.code,
            role=code.role,
            sport_name=code.sport.name if code.sport else None,
            gender=code.gender,
            created_at=code.created_at,
            used=code.is_used,
        )
        for code in codes
    ]


# ============================================================================
# PREVIEW
# ============================================================================


@router.post("/preview/{role}", response_model=CodePreviewResponse)
@redeem_limit
async def preview_access_code(
    request: Request,
    role: UserRole,
    payload: RedeemCodeRequest,
    session: ProfileSession = Depends(get_profile_session),
):
    """Validate a code for a flow without consuming it."""
    return await access_code_service.preview_code(
        session.db, payload.code, user_id=session.user_id, expected_role=role
    )


# ============================================================================
# REDEMPTION
# ============================================================================


@router.post("/redeem/athlete", response_model=RedemptionResponse)
@redeem_limit
async def redeem_athlete_code(
    request: Request,
    payload: RedeemCodeRequest,
    session: ProfileSession = Depends(get_profile_session),
):
    """Join a coach's team in a sport."""
    return await _redeem(session, payload.code, UserRole.ATHLETE)


@router.post("/redeem/coach", response_model=RedemptionResponse)
@redeem_limit
async def redeem_coach_code(
    request: Request,
    payload: RedeemCodeRequest,
    session: ProfileSession = Depends(get_profile_session),
):
    """Join an organization as a coach."""
    return await _redeem(session, payload.code, UserRole.COACH)


@router.post("/redeem/admin", response_model=RedemptionResponse)
@redeem_limit
async def redeem_admin_code(
    request: Request,
    payload: RedeemCodeRequest,
    session: ProfileSession = Depends(get_profile_session),
):
    """Join an organization as an admin."""
    return await _redeem(session, payload.code, UserRole.ADMIN)

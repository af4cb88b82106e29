"""Subscription router: current plan, billing history, cancel and resume."""

from typing import List

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.billing_service.schemas import (
    BillingHistoryResponse,
    SubscriptionResponse,
)
from services.billing_service.services import subscriptions as subscription_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.get("/me", response_model=SubscriptionResponse)
async def get_my_subscription(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await subscription_service.get_current_subscription(
        db, current_user.user_id
    )


@router.get("/me/billing-history", response_model=List[BillingHistoryResponse])
async def get_my_billing_history(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Billing history for the current subscription, newest first."""
    return await subscription_service.list_billing_history(db, current_user.user_id)


@router.post("/me/cancel", response_model=SubscriptionResponse)
async def cancel_my_subscription(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Cancel at the end of the current billing period."""
    return await subscription_service.set_cancel_at_period_end(
        db, current_user.user_id, cancel=True
    )


@router.post("/me/resume", response_model=SubscriptionResponse)
async def resume_my_subscription(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await subscription_service.set_cancel_at_period_end(
        db, current_user.user_id, cancel=False
    )

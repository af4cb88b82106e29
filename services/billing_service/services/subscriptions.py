"""Read-only subscription view plus the cancel/resume toggle."""

from libs.common.datetime_utils import as_utc, utc_now
from libs.common.errors import InputValidationError, NotFoundError
from libs.common.logging import get_logger
from libs.db.operations import compare_and_set, transient_store_errors
from services.billing_service.models import (
    BillingHistory,
    Subscription,
    SubscriptionStatus,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

CANCELABLE_STATUSES = {SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING}


async def get_current_subscription(db: AsyncSession, user_id: str) -> Subscription:
    """The user's most recent subscription."""
    result = await db.execute(
        select(Subscription)
        .where(Subscription.user_id == user_id)
        .order_by(Subscription.created_at.desc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    subscription = result.scalar_one_or_none()
    if subscription is None:
        raise NotFoundError("No subscription found")
    return subscription


async def list_billing_history(db: AsyncSession, user_id: str) -> list[BillingHistory]:
    """Billing history for the user's current subscription, newest first."""
    subscription = await get_current_subscription(db, user_id)
    result = await db.execute(
        select(BillingHistory)
        .where(BillingHistory.subscription_id == subscription.id)
        .order_by(BillingHistory.created_at.desc())
    )
    return list(result.scalars().all())


async def set_cancel_at_period_end(
    db: AsyncSession, user_id: str, *, cancel: bool
) -> Subscription:
    """Schedule or withdraw cancellation at the end of the current period.

    Repeating the same request leaves the subscription unchanged.
    """
    subscription = await get_current_subscription(db, user_id)
    if subscription.status not in CANCELABLE_STATUSES:
        raise InputValidationError(
            f"A {subscription.status.value} subscription cannot be changed"
        )
    if not cancel and as_utc(subscription.current_period_end) <= utc_now():
        raise InputValidationError("The billing period has already ended")

    with transient_store_errors("Could not update subscription"):
        changed = await compare_and_set(
            db,
            Subscription,
            criteria=[Subscription.id == subscription.id],
            guard=Subscription.cancel_at_period_end,
            expected=not cancel,
            values={"cancel_at_period_end": cancel, "updated_at": utc_now()},
        )
        await db.commit()

    if changed:
        logger.info(
            "Subscription %s %s",
            subscription.id,
            "scheduled for cancellation" if cancel else "resumed",
        )
    return await get_current_subscription(db, user_id)

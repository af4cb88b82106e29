"""Billing Service models package."""

from services.billing_service.models.core import (  # noqa: F401
    BillingHistory,
    Subscription,
)
from services.billing_service.models.enums import (  # noqa: F401
    BillingStatus,
    SubscriptionStatus,
)

__all__ = [
    "BillingHistory",
    "BillingStatus",
    "Subscription",
    "SubscriptionStatus",
]

"""Billing Service schemas package."""

from services.billing_service.schemas.subscription import (  # noqa: F401
    BillingHistoryResponse,
    SubscriptionResponse,
)

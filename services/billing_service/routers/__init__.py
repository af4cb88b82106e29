"""Billing service routers package."""

from services.billing_service.routers.subscriptions import (
    router as subscriptions_router,
)

__all__ = ["subscriptions_router"]

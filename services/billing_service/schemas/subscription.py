import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from services.billing_service.models.enums import BillingStatus, SubscriptionStatus


class SubscriptionResponse(BaseModel):
    id: uuid.UUID
    plan: str
    status: SubscriptionStatus
    amount: int
    current_period_start: datetime
    current_period_end: datetime
    cancel_at_period_end: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BillingHistoryResponse(BaseModel):
    id: uuid.UUID
    subscription_id: uuid.UUID
    amount: int
    status: BillingStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

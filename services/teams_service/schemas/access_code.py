"""Access code schemas: generation, preview and redemption."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from services.teams_service.models.enums import Gender, UserRole


class AccessCodeCreate(BaseModel):
    """Request to generate a new access code."""

    role: UserRole = UserRole.ATHLETE
    sport_id: Optional[uuid.UUID] = None
    gender: Optional[Gender] = None


class AccessCodeResponse(BaseModel):
    id: uuid.UUID
    code: str
    role: UserRole
    organization_id: Optional[uuid.UUID] = None
    sport_id: Optional[uuid.UUID] = None
    gender: Optional[Gender] = None
    created_by: str
    created_at: datetime
    used_at: Optional[datetime] = None
    used_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class GeneratedCodeResponse(AccessCodeResponse):
    """Newly generated code plus ready-to-share text."""

    share_message: str
    join_link: str


class RecentCodeItem(BaseModel):
    code: str
    role: UserRole
    sport_name: Optional[str] = None
    gender: Optional[Gender] = None
    created_at: datetime
    used: bool


class RedeemCodeRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)


class CodePreviewResponse(BaseModel):
    """What a code grants, shown before the user commits to redeeming it."""

    code: str
    role: UserRole
    organization_id: Optional[uuid.UUID] = None
    organization_name: Optional[str] = None
    sport_id: Optional[uuid.UUID] = None
    sport_name: Optional[str] = None
    gender: Optional[Gender] = None
    issued_by: str
    issuer_name: Optional[str] = None
    already_connected: bool = False


class RedemptionResponse(BaseModel):
    code: str
    role: UserRole
    organization_id: Optional[uuid.UUID] = None
    sport_id: Optional[uuid.UUID] = None
    gender: Optional[Gender] = None
    coach_id: Optional[str] = None
    resumed: bool = False


class ReconciliationResponse(BaseModel):
    scanned: int
    repaired: int
    failed: int

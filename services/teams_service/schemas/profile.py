"""Profile and session schemas."""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from services.teams_service.models.enums import UserRole


class ProfileResponse(BaseModel):
    id: str
    role: Optional[UserRole] = None
    organization_id: Optional[uuid.UUID] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    notification_preferences: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SessionResponse(BaseModel):
    """The caller's session view: identity plus profile-derived role/org."""

    user_id: str
    email: Optional[str] = None
    role: Optional[UserRole] = None
    organization_id: Optional[uuid.UUID] = None
    full_name: Optional[str] = None


class RoleSelectionRequest(BaseModel):
    role: UserRole


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    notification_preferences: Optional[dict[str, Any]] = None


class AuthUserCreatedEvent(BaseModel):
    """Payload posted by the auth provider when a new identity is created."""

    id: str
    email: Optional[EmailStr] = None
    raw_user_meta_data: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")

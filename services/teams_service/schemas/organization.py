"""Organization schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class OrganizationResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: list[str] = Field(default_factory=list)
    phone: list[str] = Field(default_factory=list)
    address: Optional[str] = None
    website: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrganizationUpdate(BaseModel):
    name: str = Field(..., max_length=200)
    email: list[EmailStr] = Field(default_factory=list)
    phone: list[str] = Field(default_factory=list)
    address: Optional[str] = None
    website: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Organization name is required")
        return v

    @field_validator("website")
    @classmethod
    def website_is_http(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("Please enter a valid website URL")
        return v

    @field_validator("address")
    @classmethod
    def blank_address_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class OrganizationAnalytics(BaseModel):
    organization_id: uuid.UUID
    total_users: int
    total_athletes: int
    total_coaches: int

"""Sports catalog and membership schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from services.teams_service.models.enums import Gender, OrganizationSportStatus


class SportResponse(BaseModel):
    id: uuid.UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class UserSportCreate(BaseModel):
    sport_id: uuid.UUID
    gender: Optional[Gender] = None


class UserSportResponse(BaseModel):
    sport_id: uuid.UUID
    sport_name: str
    organization_id: uuid.UUID
    gender: Optional[Gender] = None


class OrganizationSportResponse(BaseModel):
    sport_id: uuid.UUID
    sport_name: str
    status: OrganizationSportStatus
    created_at: datetime


class AthleteSportItem(BaseModel):
    name: str
    gender: Optional[Gender] = None


class AthleteSummary(BaseModel):
    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime
    sports: list[AthleteSportItem]


class AthleteStats(BaseModel):
    total_athletes: int
    active_this_week: int
    recent_joins: int


class CoachAthletesResponse(BaseModel):
    athletes: list[AthleteSummary]
    stats: AthleteStats


class CoachSportItem(BaseModel):
    sport_id: uuid.UUID
    name: str
    gender: Optional[Gender] = None


class CoachSummary(BaseModel):
    """A coach in the admin's organization with the sports they coach."""

    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime
    sports: list[CoachSportItem]

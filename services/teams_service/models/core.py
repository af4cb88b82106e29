"""Organizations, the sports catalog and user profiles."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.teams_service.models.enums import UserRole, UserRoleType
from services.teams_service.models.types import JSONDict, StringList
from sqlalchemy import DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

SPORTS_CATALOG = (
    "Baseball",
    "Basketball",
    "Biking",
    "Bowling",
    "Cheer",
    "Dance",
    "Fitness",
    "Football",
    "Golf",
    "Gymnastics",
    "Hockey",
    "Lacrosse",
    "Pickleball",
    "Rugby",
    "Soccer",
    "Softball",
    "Swimming",
    "Tennis",
    "Track & Field",
    "Volleyball",
)


class Organization(Base):
    """A school or club. Owns access codes, profiles and sport associations."""

    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[list[str]] = mapped_column(StringList, default=list, nullable=False)
    phone: Mapped[list[str]] = mapped_column(StringList, default=list, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<Organization {self.name}>"


class Sport(Base):
    __tablename__ = "sports"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __repr__(self):
        return f"<Sport {self.name}>"


class Profile(Base):
    """Application identity layered over the auth identity.

    ``id`` is the auth subject. Bootstrap creates the row as an athlete; role
    selection or a coach/admin code changes it. ``role`` may be NULL for rows
    written before bootstrap ran.
    """

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    role: Mapped[Optional[UserRole]] = mapped_column(UserRoleType, nullable=True)
    organization_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("organizations.id"), nullable=True, index=True
    )
    full_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    notification_preferences: Mapped[dict] = mapped_column(
        JSONDict, default=dict, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    organization: Mapped[Optional["Organization"]] = relationship(
        "Organization", lazy="selectin"
    )

    def __repr__(self):
        return f"<Profile {self.id} role={self.role}>"

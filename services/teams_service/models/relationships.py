"""Membership links: user-sport, coach-athlete, organization-sport."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.teams_service.models.enums import (
    Gender,
    GenderType,
    OrganizationSportStatus,
    enum_values,
)
from services.teams_service.models.types import JSONDict
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship


class UserSport(Base):
    """A user's participation in a sport within an organization."""

    __tablename__ = "user_sports"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "sport_id", "organization_id", name="uq_user_sport_org"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    sport_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("sports.id"), nullable=False, index=True
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id"), nullable=False
    )
    gender: Mapped[Optional[Gender]] = mapped_column(GenderType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    sport: Mapped["Sport"] = relationship("Sport", lazy="selectin")  # noqa: F821


class CoachAthlete(Base):
    """Coach-athlete link scoped by sport and organization.

    Created only as a side effect of redeeming an athlete access code.
    """

    __tablename__ = "coach_athletes"
    __table_args__ = (
        UniqueConstraint(
            "coach_id",
            "athlete_id",
            "sport_id",
            "organization_id",
            name="uq_coach_athlete_sport_org",
        ),
        Index(
            "ix_coach_athletes_coach_sport_org",
            "coach_id",
            "sport_id",
            "organization_id",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    coach_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    athlete_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    sport_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("sports.id"), nullable=False
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )


class OrganizationSport(Base):
    __tablename__ = "organization_sports"
    __table_args__ = (
        UniqueConstraint("organization_id", "sport_id", name="uq_organization_sport"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id"), nullable=False, index=True
    )
    sport_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("sports.id"), nullable=False
    )
    status: Mapped[OrganizationSportStatus] = mapped_column(
        SAEnum(
            OrganizationSportStatus,
            name="organization_sport_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=OrganizationSportStatus.ACTIVE,
        nullable=False,
    )
    settings: Mapped[dict] = mapped_column(JSONDict, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    sport: Mapped["Sport"] = relationship("Sport", lazy="selectin")  # noqa: F821

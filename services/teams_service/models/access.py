"""Single-use access codes."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.teams_service.models.enums import (
    Gender,
    GenderType,
    UserRole,
    UserRoleType,
)
from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship


class AccessCode(Base):
    """Invitation token binding a role, organization and optional sport/gender.

    ``used_at``/``used_by`` are written once, by a conditional update that only
    applies while ``used_at`` is NULL. They are never cleared.
    """

    __tablename__ = "access_codes"
    __table_args__ = (
        Index(
            "ix_access_codes_unused",
            "code",
            postgresql_where=text("used_at IS NULL"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    organization_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("organizations.id"), nullable=True, index=True
    )
    role: Mapped[UserRole] = mapped_column(UserRoleType, nullable=False)
    sport_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("sports.id"), nullable=True
    )
    gender: Mapped[Optional[Gender]] = mapped_column(GenderType, nullable=True)
    created_by: Mapped[str] = mapped_column(String, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    used_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    sport: Mapped[Optional["Sport"]] = relationship("Sport", lazy="selectin")  # noqa: F821
    organization: Mapped[Optional["Organization"]] = relationship(  # noqa: F821
        "Organization", lazy="selectin"
    )

    @property
    def is_used(self) -> bool:
        return self.used_at is not None

    def __repr__(self):
        return f"<AccessCode {self.code} role={self.role}>"

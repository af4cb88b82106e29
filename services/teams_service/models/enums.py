"""Enum definitions for teams service models."""

import enum

from sqlalchemy import Enum as SAEnum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class UserRole(str, enum.Enum):
    """Closed set of application roles. A profile may have none yet."""

    ADMIN = "admin"
    COACH = "coach"
    ATHLETE = "athlete"


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"


class OrganizationSportStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


# Shared column types so each Postgres enum type is declared once in the metadata.
UserRoleType = SAEnum(
    UserRole,
    name="user_role_enum",
    values_callable=enum_values,
    validate_strings=True,
)
GenderType = SAEnum(
    Gender,
    name="gender_enum",
    values_callable=enum_values,
    validate_strings=True,
)

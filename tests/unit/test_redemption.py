"""Unit tests for code validation, consumption and relationship creation.

Service functions are called directly with the db_session fixture.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from libs.common.errors import (
    AlreadyUsedError,
    InputValidationError,
    NotFoundError,
    RoleMismatchError,
    TransientStoreError,
)
from services.teams_service.models import (
    AccessCode,
    AnalyticsEvent,
    CoachAthlete,
    Gender,
    Profile,
    UserRole,
    UserSport,
)
from services.teams_service.services import access_codes
from services.teams_service.services.access_codes import (
    consume_code,
    materialize_relationships,
    preview_code,
    redeem_code,
    validate_code,
)
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from tests.factories import AccessCodeFactory, ProfileFactory

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _make_code(db, team, **overrides):
    defaults = {
        "organization_id": team.organization_id,
        "sport_id": team.sport_id,
        "gender": Gender.FEMALE,
        "created_by": team.coach_id,
        "role": UserRole.ATHLETE,
    }
    defaults.update(overrides)
    code = AccessCodeFactory.create(**defaults)
    db.add(code)
    await db.commit()
    return code.id, code.code


async def _count(db, model, *criteria):
    result = await db.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def _reload_code(db, code_id):
    return await db.get(AccessCode, code_id, populate_existing=True)


# ---------------------------------------------------------------------------
# validate_code
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_validate_returns_grant(db_session, team):
    code_id, code = await _make_code(db_session, team)

    grant = await validate_code(
        db_session, f"  {code.lower()} ", expected_role=UserRole.ATHLETE
    )

    assert grant.code_id == code_id
    assert grant.organization_id == team.organization_id
    assert grant.sport_id == team.sport_id
    assert grant.gender == Gender.FEMALE
    assert grant.issued_by == team.coach_id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_validate_unknown_code_is_not_found(db_session, team):
    with pytest.raises(NotFoundError):
        await validate_code(db_session, "ZZ-ZZZ-ZZ", expected_role=UserRole.ATHLETE)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_validate_malformed_code_skips_database(db_session):
    db_session.execute = AsyncMock(side_effect=AssertionError("queried"))

    with pytest.raises(InputValidationError):
        await validate_code(db_session, "   ", expected_role=UserRole.ATHLETE)

    db_session.execute.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_validate_role_mismatch_leaves_code_untouched(db_session, team):
    code_id, code = await _make_code(
        db_session, team, role=UserRole.COACH, created_by=team.admin_id
    )

    with pytest.raises(RoleMismatchError):
        await validate_code(db_session, code, expected_role=UserRole.ATHLETE)
    with pytest.raises(RoleMismatchError):
        await redeem_code(
            db_session, code, user_id="athlete-a", expected_role=UserRole.ATHLETE
        )

    stored = await _reload_code(db_session, code_id)
    assert stored.used_at is None
    assert stored.used_by is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_validate_used_code_carries_consumer(db_session, team):
    _, code = await _make_code(db_session, team)
    await redeem_code(
        db_session, code, user_id="athlete-a", expected_role=UserRole.ATHLETE
    )

    with pytest.raises(AlreadyUsedError) as exc_info:
        await validate_code(db_session, code, expected_role=UserRole.ATHLETE)

    assert exc_info.value.used_by == "athlete-a"
    assert exc_info.value.grant.code == code


# ---------------------------------------------------------------------------
# consume_code / redeem_code
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_consumption_happens_exactly_once(db_session, team):
    """Every redeemer validated before anyone consumed; only one update wins."""
    code_id, code = await _make_code(db_session, team)
    redeemers = [f"athlete-{i}" for i in range(5)]
    grants = [
        await validate_code(db_session, code, expected_role=UserRole.ATHLETE)
        for _ in redeemers
    ]

    outcomes = []
    for grant, user_id in zip(grants, redeemers):
        outcomes.append(await consume_code(db_session, grant, user_id))
        await db_session.commit()

    assert outcomes == [True, False, False, False, False]
    stored = await _reload_code(db_session, code_id)
    assert stored.used_by == "athlete-0"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_concurrent_redeemers_have_one_winner(
    session_factory, db_session, team
):
    """Redeemers on separate sessions race; exactly one consumes the code."""
    code_id, code = await _make_code(db_session, team)

    async def attempt(user_id):
        async with session_factory() as db:
            try:
                await redeem_code(
                    db, code, user_id=user_id, expected_role=UserRole.ATHLETE
                )
            except AlreadyUsedError:
                return "used"
            return "ok"

    outcomes = await asyncio.gather(*(attempt(f"athlete-{i}") for i in range(5)))

    assert sorted(outcomes) == ["ok", "used", "used", "used", "used"]
    assert await _count(db_session, CoachAthlete) == 1
    assert await _count(db_session, UserSport) == 1
    stored = await _reload_code(db_session, code_id)
    winner = f"athlete-{outcomes.index('ok')}"
    assert stored.used_by == winner


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redeem_losing_race_raises_already_used(db_session, team, monkeypatch):
    _, code = await _make_code(db_session, team)
    stale_grant = await validate_code(db_session, code, expected_role=UserRole.ATHLETE)
    await redeem_code(
        db_session, code, user_id="athlete-a", expected_role=UserRole.ATHLETE
    )

    # Second redeemer read the code before the first one consumed it
    monkeypatch.setattr(
        access_codes, "validate_code", AsyncMock(return_value=stale_grant)
    )
    with pytest.raises(AlreadyUsedError) as exc_info:
        await redeem_code(
            db_session, code, user_id="athlete-b", expected_role=UserRole.ATHLETE
        )

    assert exc_info.value.used_by is None
    assert await _count(db_session, CoachAthlete, CoachAthlete.athlete_id == "athlete-b") == 0
    assert await _count(db_session, UserSport, UserSport.user_id == "athlete-b") == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_athlete_code_scenario(db_session, team):
    """AB-123-CD (athlete, Soccer, female, O1): A joins, B is turned away."""
    code_id, code = await _make_code(db_session, team, code="AB-123-CD")

    redemption = await redeem_code(
        db_session, "AB-123-CD", user_id="athlete-a", expected_role=UserRole.ATHLETE
    )

    assert redemption.resumed is False
    assert redemption.coach_id == team.coach_id

    stored = await _reload_code(db_session, code_id)
    assert stored.used_at is not None
    assert stored.used_by == "athlete-a"

    link = (
        await db_session.execute(
            select(CoachAthlete).where(CoachAthlete.athlete_id == "athlete-a")
        )
    ).scalar_one()
    assert link.coach_id == team.coach_id
    assert link.sport_id == team.sport_id
    assert link.organization_id == team.organization_id

    user_sport = (
        await db_session.execute(
            select(UserSport).where(UserSport.user_id == "athlete-a")
        )
    ).scalar_one()
    assert user_sport.gender == Gender.FEMALE

    profile = await db_session.get(Profile, "athlete-a", populate_existing=True)
    assert profile.organization_id == team.organization_id
    assert profile.role == UserRole.ATHLETE

    with pytest.raises(AlreadyUsedError):
        await redeem_code(
            db_session, code, user_id="athlete-b", expected_role=UserRole.ATHLETE
        )

    assert await _count(db_session, CoachAthlete) == 1
    assert await _count(db_session, UserSport) == 1
    stored = await _reload_code(db_session, code_id)
    assert stored.used_by == "athlete-a"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redeem_logs_analytics_event(db_session, team):
    _, code = await _make_code(db_session, team)

    await redeem_code(
        db_session, code, user_id="athlete-a", expected_role=UserRole.ATHLETE
    )

    assert (
        await _count(
            db_session,
            AnalyticsEvent,
            AnalyticsEvent.event_type == "access_code_redeemed",
            AnalyticsEvent.organization_id == team.organization_id,
        )
        == 1
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_repeated_redemption_records_one_event(db_session, team):
    _, code = await _make_code(db_session, team)

    results = [
        await redeem_code(
            db_session, code, user_id="athlete-a", expected_role=UserRole.ATHLETE
        )
        for _ in range(3)
    ]

    assert [r.resumed for r in results] == [False, True, True]
    assert (
        await _count(
            db_session,
            AnalyticsEvent,
            AnalyticsEvent.event_type == "access_code_redeemed",
        )
        == 1
    )
    assert await _count(db_session, CoachAthlete) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redemption_names_new_profile_from_identity(db_session, team):
    _, code = await _make_code(db_session, team)

    await redeem_code(
        db_session,
        code,
        user_id="athlete-z",
        expected_role=UserRole.ATHLETE,
        email="zoe.park@example.com",
    )
    profile = await db_session.get(Profile, "athlete-z", populate_existing=True)

    assert profile.full_name == "zoe.park"
    assert profile.email == "zoe.park@example.com"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redemption_prefers_metadata_name(db_session, team):
    _, code = await _make_code(
        db_session,
        team,
        role=UserRole.COACH,
        created_by=team.admin_id,
        sport_id=None,
        gender=None,
    )

    await redeem_code(
        db_session,
        code,
        user_id="coach-m",
        expected_role=UserRole.COACH,
        email="m@example.com",
        metadata={"full_name": "  Morgan Hale "},
    )
    profile = await db_session.get(Profile, "coach-m", populate_existing=True)

    assert profile.full_name == "Morgan Hale"
    assert profile.role == UserRole.COACH


@pytest.mark.asyncio
@pytest.mark.unit
async def test_existing_athlete_joins_code_organization(db_session, team):
    unattached = ProfileFactory.create(
        id="athlete-a", role=UserRole.ATHLETE, organization_id=None
    )
    db_session.add(unattached)
    await db_session.commit()
    _, code = await _make_code(db_session, team)

    await redeem_code(
        db_session, code, user_id="athlete-a", expected_role=UserRole.ATHLETE
    )

    profile = await db_session.get(Profile, "athlete-a", populate_existing=True)
    assert profile.organization_id == team.organization_id
    assert profile.role == UserRole.ATHLETE


@pytest.mark.asyncio
@pytest.mark.unit
async def test_coach_code_binds_membership(db_session, team):
    db_session.add(ProfileFactory.create(id="new-coach", role=UserRole.ATHLETE))
    await db_session.commit()
    _, code = await _make_code(
        db_session,
        team,
        role=UserRole.COACH,
        created_by=team.admin_id,
        sport_id=None,
        gender=None,
    )

    redemption = await redeem_code(
        db_session, code, user_id="new-coach", expected_role=UserRole.COACH
    )

    assert redemption.coach_id is None
    profile = await db_session.get(Profile, "new-coach", populate_existing=True)
    assert profile.role == UserRole.COACH
    assert profile.organization_id == team.organization_id
    assert await _count(db_session, CoachAthlete) == 0
    assert await _count(db_session, UserSport) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_coach_code_with_sport_adds_user_sport(db_session, team):
    _, code = await _make_code(
        db_session, team, role=UserRole.COACH, created_by=team.admin_id
    )

    await redeem_code(
        db_session, code, user_id="new-coach", expected_role=UserRole.COACH
    )

    assert await _count(db_session, UserSport, UserSport.user_id == "new-coach") == 1


# ---------------------------------------------------------------------------
# materialize_relationships
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_materialize_twice_leaves_one_link(db_session, team):
    _, code = await _make_code(db_session, team)
    grant = await validate_code(db_session, code, expected_role=UserRole.ATHLETE)

    assert await materialize_relationships(db_session, grant, "athlete-a") is True
    assert await materialize_relationships(db_session, grant, "athlete-a") is False

    assert await _count(db_session, CoachAthlete) == 1
    assert await _count(db_session, UserSport) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_failed_materialization_is_resumed_by_same_user(
    db_session, team, monkeypatch
):
    code_id, code = await _make_code(db_session, team)
    real_link = access_codes._link_athlete
    calls = {"count": 0}

    async def flaky_link(db, grant, user_id, **identity):
        calls["count"] += 1
        if calls["count"] == 1:
            raise OperationalError(
                "INSERT INTO coach_athletes", {}, Exception("connection reset")
            )
        return await real_link(db, grant, user_id, **identity)

    monkeypatch.setattr(access_codes, "_link_athlete", flaky_link)

    with pytest.raises(TransientStoreError) as exc_info:
        await redeem_code(
            db_session, code, user_id="athlete-a", expected_role=UserRole.ATHLETE
        )
    assert exc_info.value.resumable is True

    # Consumed but not linked
    stored = await _reload_code(db_session, code_id)
    assert stored.used_by == "athlete-a"
    assert await _count(db_session, CoachAthlete) == 0

    redemption = await redeem_code(
        db_session, code, user_id="athlete-a", expected_role=UserRole.ATHLETE
    )

    assert redemption.resumed is True
    assert await _count(db_session, CoachAthlete) == 1
    assert await _count(db_session, UserSport) == 1
    assert (
        await _count(
            db_session,
            AnalyticsEvent,
            AnalyticsEvent.event_type == "access_code_redeemed",
        )
        == 1
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_resume_is_refused_for_other_users(db_session, team, monkeypatch):
    _, code = await _make_code(db_session, team)
    monkeypatch.setattr(
        access_codes,
        "_link_athlete",
        AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("down"))),
    )
    with pytest.raises(TransientStoreError):
        await redeem_code(
            db_session, code, user_id="athlete-a", expected_role=UserRole.ATHLETE
        )

    with pytest.raises(AlreadyUsedError):
        await redeem_code(
            db_session, code, user_id="athlete-b", expected_role=UserRole.ATHLETE
        )


# ---------------------------------------------------------------------------
# preview_code
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_preview_describes_grant(db_session, team):
    code_id, code = await _make_code(db_session, team)

    preview = await preview_code(
        db_session, code, user_id="athlete-a", expected_role=UserRole.ATHLETE
    )

    assert preview["sport_name"] == "Soccer"
    assert preview["organization_name"] == "O1"
    assert preview["issuer_name"] == "Casey Coach"
    assert preview["already_connected"] is False
    stored = await _reload_code(db_session, code_id)
    assert stored.used_at is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_preview_reports_existing_connection(db_session, team):
    _, first = await _make_code(db_session, team)
    _, second = await _make_code(db_session, team)
    await redeem_code(
        db_session, first, user_id="athlete-a", expected_role=UserRole.ATHLETE
    )

    preview = await preview_code(
        db_session, second, user_id="athlete-a", expected_role=UserRole.ATHLETE
    )

    assert preview["already_connected"] is True

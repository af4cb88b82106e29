"""Integration tests for the organization endpoints."""

import pytest
from services.teams_service.models import (
    AnalyticsEvent,
    Gender,
    OrganizationSport,
    OrganizationSportStatus,
    UserRole,
    UserSport,
)
from sqlalchemy import select
from tests.conftest import make_user, override_auth
from tests.factories import OrganizationFactory, ProfileFactory


def _app():
    from services.teams_service.app.main import app

    return app


def _admin(team):
    return make_user(user_id=team.admin_id, email=team.admin_email)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_my_organization(teams_client, team):
    with override_auth(_app(), _admin(team)):
        response = await teams_client.get("/organizations/me")

    assert response.status_code == 200, response.text
    assert response.json()["name"] == "O1"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_updates_organization(teams_client, db_session, team):
    with override_auth(_app(), _admin(team)):
        response = await teams_client.patch(
            "/organizations/me",
            json={
                "name": "  Central High  ",
                "email": ["office@central.example.com"],
                "phone": ["555-0100"],
                "website": "https://central.example.com",
            },
        )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["name"] == "Central High"
    assert data["email"] == ["office@central.example.com"]
    assert data["website"] == "https://central.example.com"

    events = await db_session.execute(
        select(AnalyticsEvent).where(AnalyticsEvent.event_type == "organization_updated")
    )
    assert events.scalar_one().event_data["updated_by"] == team.admin_id


@pytest.mark.asyncio
@pytest.mark.integration
async def test_invalid_website_is_rejected(teams_client, team):
    with override_auth(_app(), _admin(team)):
        response = await teams_client.patch(
            "/organizations/me", json={"name": "O1", "website": "central.example"}
        )

    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_coach_cannot_update_organization(teams_client, team):
    coach = make_user(user_id=team.coach_id, email=team.coach_email)

    with override_auth(_app(), coach):
        response = await teams_client.patch("/organizations/me", json={"name": "X"})

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_organization_analytics(teams_client, team):
    with override_auth(_app(), _admin(team)):
        response = await teams_client.get("/organizations/me/analytics")

    assert response.status_code == 200, response.text
    assert response.json() == {
        "organization_id": str(team.organization_id),
        "total_users": 2,
        "total_athletes": 0,
        "total_coaches": 1,
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_organization_sports(teams_client, db_session, team):
    db_session.add(
        OrganizationSport(
            organization_id=team.organization_id,
            sport_id=team.sport_id,
            status=OrganizationSportStatus.ACTIVE,
        )
    )
    await db_session.commit()

    with override_auth(_app(), _admin(team)):
        response = await teams_client.get("/organizations/me/sports")

    assert response.status_code == 200, response.text
    [entry] = response.json()
    assert entry["sport_name"] == "Soccer"
    assert entry["status"] == "active"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_lists_coaches_with_sports(teams_client, db_session, team):
    other_org = OrganizationFactory.create(name="O2")
    outsider = ProfileFactory.create(
        role=UserRole.COACH, organization_id=other_org.id, full_name="Other Coach"
    )
    db_session.add_all(
        [
            other_org,
            outsider,
            UserSport(
                user_id=team.coach_id,
                sport_id=team.sport_id,
                organization_id=team.organization_id,
                gender=Gender.FEMALE,
            ),
        ]
    )
    await db_session.commit()

    with override_auth(_app(), _admin(team)):
        response = await teams_client.get("/organizations/me/coaches")

    assert response.status_code == 200, response.text
    [coach] = response.json()
    assert coach["id"] == team.coach_id
    assert coach["full_name"] == "Casey Coach"
    assert coach["email"] == team.coach_email
    assert coach["sports"] == [
        {"sport_id": str(team.sport_id), "name": "Soccer", "gender": "female"}
    ]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_coach_roster_is_admin_only(teams_client, team):
    coach = make_user(user_id=team.coach_id, email=team.coach_email)

    with override_auth(_app(), coach):
        response = await teams_client.get("/organizations/me/coaches")

    assert response.status_code == 403
    assert response.json()["code"] == "PERMISSION_DENIED"

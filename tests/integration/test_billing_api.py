"""Integration tests for the billing service."""

from datetime import datetime, timedelta, timezone

import pytest
from tests.conftest import make_user, override_auth
from tests.factories import BillingHistoryFactory, SubscriptionFactory


def _app():
    from services.billing_service.app.main import app

    return app


async def _subscribe(db, user_id, **overrides):
    subscription = SubscriptionFactory.create(user_id=user_id, **overrides)
    db.add(subscription)
    await db.commit()
    return subscription.id


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(billing_client):
    response = await billing_client.get("/health")

    assert response.status_code == 200
    assert response.json()["service"] == "billing"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_no_subscription(billing_client):
    with override_auth(_app(), make_user()):
        response = await billing_client.get("/subscriptions/me")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_current_subscription_and_history(billing_client, db_session):
    user = make_user()
    subscription_id = await _subscribe(db_session, user.user_id)
    now = datetime.now(timezone.utc)
    db_session.add_all(
        [
            BillingHistoryFactory.create(
                subscription_id=subscription_id,
                amount=2900,
                created_at=now - timedelta(days=60),
            ),
            BillingHistoryFactory.create(
                subscription_id=subscription_id,
                amount=2900,
                created_at=now - timedelta(days=30),
            ),
        ]
    )
    await db_session.commit()

    with override_auth(_app(), user):
        current = await billing_client.get("/subscriptions/me")
        history = await billing_client.get("/subscriptions/me/billing-history")

    assert current.status_code == 200, current.text
    assert current.json()["id"] == str(subscription_id)
    assert current.json()["plan"] == "Team Pro"
    assert history.status_code == 200
    items = history.json()
    assert len(items) == 2
    assert items[0]["created_at"] > items[1]["created_at"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cancel_then_resume(billing_client, db_session):
    user = make_user()
    await _subscribe(db_session, user.user_id)

    with override_auth(_app(), user):
        canceled = await billing_client.post("/subscriptions/me/cancel")
        resumed = await billing_client.post("/subscriptions/me/resume")

    assert canceled.status_code == 200, canceled.text
    assert canceled.json()["cancel_at_period_end"] is True
    assert resumed.status_code == 200, resumed.text
    assert resumed.json()["cancel_at_period_end"] is False


@pytest.mark.asyncio
@pytest.mark.integration
async def test_canceled_subscription_cannot_resume(billing_client, db_session):
    from services.billing_service.models import SubscriptionStatus

    user = make_user()
    await _subscribe(db_session, user.user_id, status=SubscriptionStatus.CANCELED)

    with override_auth(_app(), user):
        response = await billing_client.post("/subscriptions/me/resume")

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"

import uuid
from contextlib import contextmanager
from types import SimpleNamespace
from typing import AsyncGenerator, Optional

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.base import Base
from libs.db.session import get_async_db, get_session_factory

# Import all models so metadata includes every table
from services.billing_service import models as _billing_models  # noqa: F401
from services.teams_service import models as _teams_models  # noqa: F401


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def make_user(
    user_id: Optional[str] = None,
    email: Optional[str] = None,
    role: str = "authenticated",
    full_name: Optional[str] = None,
) -> AuthUser:
    """Build an authenticated user as decoded from a Supabase token."""
    user_id = user_id or str(uuid.uuid4())
    return AuthUser(
        user_id=user_id,
        email=email or f"user-{user_id[:8]}@test.com",
        role=role,
        user_metadata={"full_name": full_name} if full_name else {},
    )


def make_service_user() -> AuthUser:
    return make_user(user_id="service", email="service@test.com", role="service_role")


@contextmanager
def override_auth(app, user: AuthUser):
    """Authenticate every request to ``app`` as ``user`` inside the block."""
    previous = app.dependency_overrides.get(get_current_user)
    app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield user
    finally:
        if previous is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = previous


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """A throwaway SQLite database file per test with every table created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


# ---------------------------------------------------------------------------
# Service clients
# ---------------------------------------------------------------------------


@contextmanager
def _overridden(app, db_session, session_factory):
    app.dependency_overrides[get_async_db] = lambda: db_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def teams_client(db_session, session_factory) -> AsyncGenerator[AsyncClient, None]:
    from services.teams_service.app.main import app

    with _overridden(app, db_session, session_factory):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac


@pytest_asyncio.fixture
async def billing_client(
    db_session, session_factory
) -> AsyncGenerator[AsyncClient, None]:
    from services.billing_service.app.main import app

    with _overridden(app, db_session, session_factory):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def team(db_session) -> SimpleNamespace:
    """Organization "O1" with Soccer, a coach and an admin.

    Only ids and names are exposed so tests never touch expired instances after
    a rollback inside the code under test.
    """
    from services.teams_service.models import UserRole
    from tests.factories import OrganizationFactory, ProfileFactory, SportFactory

    organization = OrganizationFactory.create(name="O1")
    sport = SportFactory.create(name="Soccer")
    coach = ProfileFactory.create(
        role=UserRole.COACH, organization_id=organization.id, full_name="Casey Coach"
    )
    admin = ProfileFactory.create(
        role=UserRole.ADMIN, organization_id=organization.id, full_name="Alex Admin"
    )
    db_session.add_all([organization, sport, coach, admin])
    await db_session.commit()

    return SimpleNamespace(
        organization_id=organization.id,
        sport_id=sport.id,
        coach_id=coach.id,
        coach_email=coach.email,
        admin_id=admin.id,
        admin_email=admin.email,
    )

"""Create an admin auth user, their organization and admin profile.

Usage:
    ENV_FILE=.env.dev python scripts/users/create_admin.py \
        --email admin@example.com --password change-me --organization "Central High"
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add backend root to path so we can import modules
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from dotenv import load_dotenv

# MUST be done before importing libs that use get_settings()
project_root = Path(__file__).resolve().parents[2]
env_file = os.environ.get("ENV_FILE", ".env.prod")
load_dotenv(project_root / env_file, override=True)

import httpx
from sqlalchemy import select

from libs.common.config import get_settings
from libs.db.config import AsyncSessionLocal
from services.teams_service.models import Organization, Profile, UserRole

settings = get_settings()


def _admin_headers() -> dict[str, str]:
    return {
        "apikey": settings.SUPABASE_SERVICE_ROLE_KEY,
        "Authorization": f"Bearer {settings.SUPABASE_SERVICE_ROLE_KEY}",
        "Content-Type": "application/json",
    }


async def _find_auth_user(client: httpx.AsyncClient, email: str):
    list_url = f"{settings.SUPABASE_URL}/auth/v1/admin/users"
    response = await client.get(list_url, headers=_admin_headers())
    response.raise_for_status()
    for user in response.json().get("users", []):
        if user.get("email") == email:
            return user["id"]
    return None


async def ensure_auth_user(email: str, password: str, full_name: str) -> str:
    """Create the Supabase auth user, or return the id of the existing one."""
    payload = {
        "email": email,
        "password": password,
        "email_confirm": True,
        "user_metadata": {"full_name": full_name},
    }
    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.post(
            f"{settings.SUPABASE_URL}/auth/v1/admin/users",
            json=payload,
            headers=_admin_headers(),
        )
        if response.status_code == 200:
            data = response.json()
            auth_uid = data["user"]["id"] if "user" in data else data["id"]
            print(f"✅ Supabase auth user created: {auth_uid}")
            return auth_uid

        if response.status_code == 422 or "already" in response.text:
            auth_uid = await _find_auth_user(client, email)
            if auth_uid:
                print(f"⚠️ Auth user already exists: {auth_uid}")
                return auth_uid

        raise RuntimeError(
            f"Failed to create Supabase user: {response.status_code} {response.text}"
        )


async def create_admin(email: str, password: str, organization_name: str, full_name: str):
    auth_uid = await ensure_auth_user(email, password, full_name)

    async with AsyncSessionLocal() as session:
        async with session.begin():
            profile = await session.get(Profile, auth_uid)
            organization = None
            if profile is not None and profile.organization_id is not None:
                organization = await session.get(Organization, profile.organization_id)

            if organization is None:
                result = await session.execute(
                    select(Organization).where(Organization.name == organization_name)
                )
                organization = result.scalars().first()
            if organization is None:
                organization = Organization(name=organization_name, email=[email])
                session.add(organization)
                await session.flush()
                print(f"✅ Organization created: {organization.name}")

            if profile is None:
                profile = Profile(id=auth_uid, email=email, full_name=full_name)
                session.add(profile)
            profile.role = UserRole.ADMIN
            profile.organization_id = organization.id

    print("\n🎉 Admin setup complete!")
    print(f"Email: {email}")
    print(f"Organization: {organization_name}")


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--organization", required=True)
    parser.add_argument("--full-name", default="Admin User")
    args = parser.parse_args()
    asyncio.run(
        create_admin(args.email, args.password, args.organization, args.full_name)
    )


if __name__ == "__main__":
    main()

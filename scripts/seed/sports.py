"""Seed the sports catalog. Safe to run repeatedly."""

import asyncio
import os
import sys

# Add backend root to path so we can import modules
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from libs.db.config import AsyncSessionLocal
from services.teams_service.models import SPORTS_CATALOG
from services.teams_service.services.sports import seed_sports_catalog


async def seed_sports():
    async with AsyncSessionLocal() as session:
        added = await seed_sports_catalog(session)
    print(f"✅ Sports catalog: {added} added, {len(SPORTS_CATALOG) - added} already present")


if __name__ == "__main__":
    asyncio.run(seed_sports())

"""Repair redeemed access codes whose team links were never created.

Run periodically (cron) or after an incident; repeated runs are harmless.
"""

import asyncio
import os
import sys

# Add backend root to path so we can import modules
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from libs.common.logging import configure_logging
from libs.db.config import AsyncSessionLocal
from services.teams_service.services.reconciliation import reconcile_consumed_codes


async def reconcile():
    configure_logging()
    async with AsyncSessionLocal() as session:
        report = await reconcile_consumed_codes(session)
    print(
        f"Scanned {report.scanned}, repaired {report.repaired}, failed {report.failed}"
    )
    return report.failed == 0


if __name__ == "__main__":
    ok = asyncio.run(reconcile())
    sys.exit(0 if ok else 1)

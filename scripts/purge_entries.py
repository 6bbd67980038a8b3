#!/usr/bin/env python3
"""
Run the post-boot maintenance purge by hand: delete negative and corrupt days.
Only run this while the server is stopped and before today's first reading,
otherwise today's still-negative offset is deleted too.
"""
import asyncio
from pathlib import Path
import sys

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from pedometer.accumulator import run_startup_maintenance
from pedometer.config import get_settings
from pedometer.database import Database, StorageUnavailableError
from pedometer.ledger import DayLedger


async def purge_entries(database_url: str):
    async with Database(database_url) as db:
        async with db.session() as session:
            return await run_startup_maintenance(DayLedger(session))


if __name__ == "__main__":
    print("=" * 60)
    print("Purging negative and corrupt step entries")
    print("=" * 60)

    try:
        report = asyncio.run(purge_entries(get_settings().resolved_database_url))
    except StorageUnavailableError as e:
        print(f"✗ Error: {e}")
        sys.exit(1)

    print(f"✓ Removed {report.negative_removed} negative entries")
    print(f"✓ Removed {report.corrupt_removed} corrupt entries")

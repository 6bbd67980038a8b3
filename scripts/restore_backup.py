#!/usr/bin/env python3
"""Restore step history from a backup file (JSON or day;steps CSV)."""
import asyncio
from pathlib import Path
import sys

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from pedometer.accumulator import restore_days
from pedometer.backup.processor import load_backup
from pedometer.config import get_settings
from pedometer.database import Database
from pedometer.ledger import DayLedger


async def restore_from_backup(backup_file: str, database_url: str):
    """Insert backed-up days that are not in the database yet."""
    parsed = load_backup(backup_file)

    print(f"Loading backup from {backup_file}")
    print(f"Found {len(parsed.entries)} entries ({parsed.malformed} malformed lines skipped)")

    async with Database(database_url) as db:
        async with db.session() as session:
            report = await restore_days(DayLedger(session), parsed.entries)

    print(f"\n✓ Restored {report.restored} days")
    print(f"  Skipped {report.skipped} (already present or negative)")
    print("\nRestore complete!")
    return report


if __name__ == "__main__":
    backup_file = sys.argv[1] if len(sys.argv) > 1 else "backups/steps.json"

    if not Path(backup_file).exists():
        print(f"Error: Backup file {backup_file} not found")
        sys.exit(1)

    asyncio.run(restore_from_backup(backup_file, get_settings().resolved_database_url))

#!/usr/bin/env python3
"""Write the step history to a backup file (.json, anything else as day;steps CSV)."""
import asyncio
from pathlib import Path
import sys

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from pedometer.backup.processor import exportable, to_csv, to_json
from pedometer.config import get_settings
from pedometer.database import Database
from pedometer.ledger import DayLedger


async def export_backup(backup_file: str, database_url: str) -> int:
    async with Database(database_url) as db:
        async with db.session() as session:
            entries = exportable(await DayLedger(session).get_days())

    path = Path(backup_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".json":
        path.write_text(to_json(entries), encoding="utf-8")
    else:
        path.write_text(to_csv(entries), encoding="utf-8")

    print(f"✓ Exported {len(entries)} days to {backup_file}")
    return len(entries)


if __name__ == "__main__":
    backup_file = sys.argv[1] if len(sys.argv) > 1 else "backups/steps.json"
    asyncio.run(export_backup(backup_file, get_settings().resolved_database_url))

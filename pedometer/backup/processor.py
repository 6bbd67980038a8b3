"""Reading and writing backup files."""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Tuple, Union

from pydantic import ValidationError

from pedometer.backup.models import BackupEntry
from pedometer.models import DayRecord

CSV_SEPARATOR = ";"


@dataclass
class ParseResult:
    """Entries read from a backup plus the number of unusable lines/items."""

    entries: List[Tuple[int, int]] = field(default_factory=list)
    malformed: int = 0


def parse_csv(text: str) -> ParseResult:
    """
    Parse ``day;steps`` lines.

    Args:
        text: File content, one pair per line

    Returns:
        ParseResult; blank lines are ignored, unparseable ones counted as malformed
    """
    result = ParseResult()
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        parts = line.split(CSV_SEPARATOR)
        if len(parts) != 2:
            result.malformed += 1
            continue
        try:
            entry = BackupEntry(day=int(parts[0]), steps=int(parts[1]))
        except (ValueError, ValidationError):
            result.malformed += 1
            continue
        result.entries.append((entry.day, entry.steps))
    return result


def parse_json(text: str) -> ParseResult:
    """Parse a JSON list of ``{"day": ..., "steps": ...}`` objects."""
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("Backup JSON must be a list of entries")

    result = ParseResult()
    for item in data:
        try:
            entry = BackupEntry.model_validate(item)
        except ValidationError:
            result.malformed += 1
            continue
        result.entries.append((entry.day, entry.steps))
    return result


def load_backup(path: Union[str, Path]) -> ParseResult:
    """Read a backup file, choosing the format from the extension (.json or CSV)."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return parse_json(text)
    return parse_csv(text)


def exportable(records: Iterable[DayRecord]) -> List[BackupEntry]:
    """Entries worth backing up: negative offsets and corrupt values are left out."""
    return [
        BackupEntry(day=record.day, steps=record.delta)
        for record in records
        if record.delta >= 0 and not record.is_corrupt
    ]


def to_csv(entries: Iterable[BackupEntry]) -> str:
    return "".join(f"{entry.day}{CSV_SEPARATOR}{entry.steps}\n" for entry in entries)


def to_json(entries: Iterable[BackupEntry]) -> str:
    return json.dumps([entry.model_dump() for entry in entries], indent=2)

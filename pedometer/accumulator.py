"""Day rollover, backup restore and startup maintenance on top of the ledger."""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from pedometer.days import previous_day
from pedometer.ledger import NOT_FOUND, DayLedger

logger = logging.getLogger(__name__)


@dataclass
class RestoreReport:
    restored: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.restored + self.skipped


@dataclass
class MaintenanceReport:
    negative_removed: int = 0
    corrupt_removed: int = 0


async def roll_over(ledger: DayLedger, day: int, raw_value: int) -> bool:
    """Start ``day`` given the hardware counter reading ``raw_value``.

    The new day is seeded with ``-raw_value`` so that once the sensor has
    credited more than ``raw_value`` steps, its delta is the number of steps
    taken since the day began. ``raw_value`` counts steps since the last reset,
    and those belong to yesterday, so they are credited to yesterday's record
    if it exists.

    Returns True if the day record was created. If the day already exists this
    is a no-op; today's steps then arrive through ``credit_steps``.
    """
    if raw_value < 0:
        logger.warning("Ignoring rollover for %s with negative counter %s", day, raw_value)
        return False
    if await ledger.get_steps(day) is not NOT_FOUND:
        return False

    created = await ledger.create_day(day, -raw_value)
    # runs even if another writer created the day first, yesterday still gets its steps
    await ledger.add_steps(previous_day(day), raw_value)
    logger.debug("insertDay %s / %s (created=%s)", day, raw_value, created)
    return created


async def credit_steps(ledger: DayLedger, day: int, amount: int) -> None:
    """Apply steps the sensor observed during an already started day."""
    await ledger.add_steps(day, amount)


async def restore_days(ledger: DayLedger, entries: Iterable[Tuple[int, int]]) -> RestoreReport:
    """Insert backed-up ``(day, steps)`` pairs into empty slots only.

    Existing days are never touched and no offsets are computed, so the
    result does not depend on the order of ``entries``.
    """
    report = RestoreReport()
    for day, steps in entries:
        if await ledger.restore_day(day, steps):
            report.restored += 1
        else:
            report.skipped += 1
    logger.info("Restored %d days, skipped %d", report.restored, report.skipped)
    return report


async def run_startup_maintenance(ledger: DayLedger) -> MaintenanceReport:
    """Remove negative then corrupt entries. Only valid right after a reboot."""
    report = MaintenanceReport(
        negative_removed=await ledger.purge_negative(),
        corrupt_removed=await ledger.purge_corrupt(),
    )
    logger.info(
        "Maintenance removed %d negative and %d corrupt entries",
        report.negative_removed,
        report.corrupt_removed,
    )
    return report


class StartupMaintenance:
    """Runs the maintenance purge at most once per process.

    Once a rollover has been processed, the current day's record may be
    legitimately negative, so the purge is refused from then on.
    """

    def __init__(self):
        self.done = False
        self.rollover_seen = False

    def mark_rollover(self) -> None:
        self.rollover_seen = True

    async def run(self, ledger: DayLedger) -> Optional[MaintenanceReport]:
        if self.done:
            return None
        if self.rollover_seen:
            logger.warning("Skipping maintenance purge: a new day was already processed")
            return None
        report = await run_startup_maintenance(ledger)
        self.done = True
        return report

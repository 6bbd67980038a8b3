"""Day ledger: persistence and aggregate queries for DayRecord rows."""
import logging
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from pedometer import days
from pedometer.database import StorageUnavailableError
from pedometer.models import CORRUPT_THRESHOLD, DayRecord

logger = logging.getLogger(__name__)

# Returned by get_steps when a day has no record; a real delta may be 0 or negative
NOT_FOUND = None

# Rows with a delta in this range count towards totals and valid days
_confirmed = (DayRecord.delta > 0) & (DayRecord.delta < CORRUPT_THRESHOLD)


class DayLedger:
    """All reads and writes of the ``steps`` table go through here.

    A ledger wraps one session and expects a single writer. Every mutation
    commits before returning.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _write(self, statement=None):
        """Execute ``statement`` if given, then commit pending changes."""
        result = None
        try:
            if statement is not None:
                result = await self.session.execute(statement)
            await self.session.commit()
        except OperationalError as exc:
            await self.session.rollback()
            raise StorageUnavailableError("Cannot write to the step database") from exc
        return result

    async def _exists(self, day: int) -> bool:
        result = await self.session.execute(select(DayRecord.day).where(DayRecord.day == day))
        return result.first() is not None

    async def _insert(self, day: int, delta: int) -> bool:
        if await self._exists(day):
            return False
        self.session.add(DayRecord(day=day, delta=delta))
        try:
            await self._write()
        except IntegrityError:
            # another writer created the day between the check and the insert
            await self.session.rollback()
            return False
        return True

    async def create_day(self, day: int, initial_delta: int) -> bool:
        """Insert a day seeded with ``initial_delta`` (the negated raw counter).

        Returns False without writing when the day already exists or the raw
        value behind the offset was negative; use add_steps for existing days.
        """
        if initial_delta > 0:
            return False
        created = await self._insert(day, initial_delta)
        if created:
            logger.debug("createDay %s / %s", day, initial_delta)
            await self.log_state()
        return created

    async def restore_day(self, day: int, absolute_steps: int) -> bool:
        """Insert a day from a backup. Never overwrites an existing day."""
        if absolute_steps < 0:
            return False
        return await self._insert(day, absolute_steps)

    async def add_steps(self, day: int, amount: int) -> None:
        """Add ``amount`` to the day's delta. Does nothing if the day has no record."""
        result = await self._write(
            update(DayRecord)
            .where(DayRecord.day == day)
            .values(delta=DayRecord.delta + amount)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount:
            logger.debug("addSteps %s / %s", day, amount)
            await self.log_state()

    async def get_steps(self, day: int) -> Optional[int]:
        """Return the day's delta, or NOT_FOUND when there is no record."""
        result = await self.session.execute(select(DayRecord.delta).where(DayRecord.day == day))
        row = result.first()
        if row is None:
            return NOT_FOUND
        return row[0]

    async def get_total_excluding_today(self, today: Optional[int] = None) -> int:
        """Sum of confirmed steps over all days before ``today``."""
        if today is None:
            today = days.today()
        result = await self.session.execute(
            select(func.coalesce(func.sum(DayRecord.delta), 0)).where(
                _confirmed, DayRecord.day < today
            )
        )
        return int(result.scalar_one())

    async def get_record_day(self) -> int:
        """Highest delta of any day, today included. 0 for an empty ledger."""
        result = await self.session.execute(
            select(func.coalesce(func.max(DayRecord.delta), 0)).where(
                DayRecord.delta < CORRUPT_THRESHOLD
            )
        )
        return int(result.scalar_one())

    async def get_valid_day_count(self) -> int:
        """Number of days with a positive delta, never less than 1.

        Today is counted only once its delta has turned positive. The floor
        lets callers divide by the result.
        """
        result = await self.session.execute(
            select(func.count()).select_from(DayRecord).where(_confirmed)
        )
        return max(int(result.scalar_one()), 1)

    async def purge_negative(self) -> int:
        """Delete every day with a negative delta.

        Only call this right after a reboot, before the new day's first reading:
        the day currently accumulating is still negative at any other time.
        """
        result = await self._write(
            delete(DayRecord)
            .where(DayRecord.delta < 0)
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount

    async def purge_corrupt(self) -> int:
        """Delete every day whose delta is at or above CORRUPT_THRESHOLD."""
        result = await self._write(
            delete(DayRecord)
            .where(DayRecord.delta >= CORRUPT_THRESHOLD)
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount

    async def get_days(self, start: Optional[int] = None, end: Optional[int] = None) -> List[DayRecord]:
        """Records with ``start <= day <= end``, oldest first. Bounds are optional."""
        query = select(DayRecord).order_by(DayRecord.day)
        if start is not None:
            query = query.where(DayRecord.day >= start)
        if end is not None:
            query = query.where(DayRecord.day <= end)
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def get_latest(self, limit: int = 5) -> List[DayRecord]:
        result = await self.session.execute(
            select(DayRecord)
            .order_by(DayRecord.day.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def log_state(self) -> None:
        """Write the five most recent rows to the debug log."""
        if not logger.isEnabledFor(logging.DEBUG):
            return
        for record in await self.get_latest(5):
            logger.debug("  %s", record)

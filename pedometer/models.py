"""SQLAlchemy models for the application."""
from typing import Annotated

from pydantic import Field
from sqlalchemy import BigInteger, Column, Integer

from pedometer.database import Base

# Deltas at or above this are sensor glitches / overflows
CORRUPT_THRESHOLD = 2_000_000_000

# Value ranges of the day (BIGINT) and delta (INTEGER) columns
DAY_MIN, DAY_MAX = -(2 ** 63), 2 ** 63 - 1
STEPS_MIN, STEPS_MAX = -(2 ** 31), 2 ** 31 - 1

# Request/backup fields that end up in those columns
DayKey = Annotated[int, Field(ge=DAY_MIN, le=DAY_MAX)]
StepValue = Annotated[int, Field(ge=STEPS_MIN, le=STEPS_MAX)]


class DayRecord(Base):
    """Step bookkeeping for one calendar day.

    ``day`` is the local-midnight timestamp in milliseconds. ``delta`` is not
    the day's step count on its own: a day created by a rollover starts at
    ``-raw_counter`` and every step the sensor reports afterwards is added to
    it, so it only turns positive once the day's steps exceed that offset.
    Restored days hold their final count directly.
    """

    __tablename__ = "steps"

    day = Column(BigInteger, primary_key=True, autoincrement=False)
    delta = Column(Integer, nullable=False)

    @property
    def is_corrupt(self) -> bool:
        return self.delta >= CORRUPT_THRESHOLD

    def __repr__(self):
        return f"<DayRecord(day={self.day}, delta={self.delta})>"

"""Day keys: local-midnight timestamps in milliseconds since the epoch."""
from datetime import datetime, time
from typing import Optional

DAY_MS = 24 * 60 * 60 * 1000


def day_key(moment: Optional[datetime] = None) -> int:
    """Return the key of the local calendar day containing ``moment``.

    Naive datetimes are taken as local time; aware ones are converted to the
    local zone first.
    """
    if moment is None:
        moment = datetime.now()
    elif moment.tzinfo is not None:
        moment = moment.astimezone().replace(tzinfo=None)
    midnight = datetime.combine(moment.date(), time.min)
    return int(midnight.timestamp() * 1000)


def today() -> int:
    return day_key()


def previous_day(day: int) -> int:
    return day - DAY_MS


def to_datetime(day: int) -> datetime:
    """Local datetime of a day key, for display."""
    return datetime.fromtimestamp(day / 1000)

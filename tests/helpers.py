"""Shared day keys for tests."""

from pedometer.days import DAY_MS

# 2024-01-01T00:00:00Z; the ledger treats day keys as opaque integers
DAY = 1_704_067_200_000
YESTERDAY = DAY - DAY_MS
TOMORROW = DAY + DAY_MS
TWO_DAYS_AGO = YESTERDAY - DAY_MS

"""Pydantic models for backup import/export."""
from typing import List, Optional

from pydantic import BaseModel, Field

from pedometer.models import DayKey, StepValue


class BackupEntry(BaseModel):
    day: DayKey
    steps: StepValue


class RestoreRequest(BaseModel):
    entries: List[BackupEntry] = Field(default_factory=list)
    secret: Optional[str] = None


class RestoreResponse(BaseModel):
    restored: int
    skipped: int

"""Staged care plan updates and the persistence seam."""

from carevoice.voice.staging.repository import (
    CarePlanRepository,
    InMemoryCarePlanRepository,
    SqliteCarePlanRepository,
)
from carevoice.voice.staging.store import UpdateStagingStore

__all__ = [
    "CarePlanRepository",
    "InMemoryCarePlanRepository",
    "SqliteCarePlanRepository",
    "UpdateStagingStore",
]

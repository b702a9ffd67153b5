from __future__ import annotations

from dataclasses import dataclass
from datetime import time

from app.domain.entities.schedule import ScheduleEntry, Weekday

PLACEHOLDER_SERVICE_ID = 0


@dataclass(frozen=True)
class ServiceRecord:
    id: int
    provider_id: int
    category_id: int
    title: str
    description: str | None = None
    price: float | None = None
    duration_minutes: int | None = None
    is_active: bool = True
    category_name: str = ""
    # False for the placeholder built when creation succeeded but the body was unreadable.
    confirmed: bool = True


@dataclass(frozen=True)
class StoredPhoto:
    id: int
    url: str
    sort_order: int = 0


@dataclass(frozen=True)
class FailedUpload:
    index: int
    filename: str
    error: str


@dataclass(frozen=True)
class PhotoUploadReport:
    stored: tuple[StoredPhoto, ...] = ()
    failed: tuple[FailedUpload, ...] = ()
    attempted: int = 0

    @property
    def fully_succeeded(self) -> bool:
        return not self.failed and len(self.stored) == self.attempted


@dataclass(frozen=True)
class CreatedSchedule:
    id: int
    weekday: Weekday
    start: time
    end: time


@dataclass(frozen=True)
class FailedSchedule:
    entry: ScheduleEntry
    error: str


@dataclass(frozen=True)
class ScheduleCreationReport:
    created: tuple[CreatedSchedule, ...] = ()
    failed: tuple[FailedSchedule, ...] = ()

    @property
    def fully_succeeded(self) -> bool:
        return not self.failed

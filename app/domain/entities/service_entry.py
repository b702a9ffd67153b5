from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from app.domain.entities.service_record import PhotoUploadReport, ScheduleCreationReport, ServiceRecord


class SubmissionStatus(str, Enum):
    COMPLETED = "completed"
    AWAITING_ACKNOWLEDGEMENT = "awaiting_acknowledgement"
    DECLINED = "declined"


@dataclass(frozen=True)
class AmbiguityNotice:
    operation: str
    reason: str
    prompt: str
    corrective_steps: tuple[str, ...]
    status_code: int | None = None


@dataclass(frozen=True)
class ServiceEntryResult:
    status: SubmissionStatus
    category_id: int
    service: ServiceRecord
    photos: PhotoUploadReport | None = None
    schedules: ScheduleCreationReport | None = None
    notices: tuple[str, ...] = ()
    ambiguity: AmbiguityNotice | None = None

    @property
    def provisional(self) -> bool:
        return not self.service.confirmed

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from app.domain.entities.file_upload import FileUpload
from app.domain.entities.schedule import ScheduleSet


class PhotoList:
    """Pending photo attachments keyed by a stable id, in attach order."""

    def __init__(self) -> None:
        self._photos: dict[str, FileUpload] = {}
        self._sequence = 0

    def __len__(self) -> int:
        return len(self._photos)

    def __iter__(self) -> Iterator[tuple[str, FileUpload]]:
        return iter(list(self._photos.items()))

    def add(self, photo: FileUpload) -> str:
        self._sequence += 1
        photo_id = f"photo-{self._sequence}"
        self._photos[photo_id] = photo
        return photo_id

    def remove(self, photo_id: str) -> bool:
        return self._photos.pop(photo_id, None) is not None

    def files(self) -> list[FileUpload]:
        return list(self._photos.values())


@dataclass
class ServiceDraft:
    category_id: int | None = None
    title: str = ""
    description: str | None = None
    price: float | None = None
    duration_minutes: int | None = None
    is_active: bool = True
    schedule: ScheduleSet = field(default_factory=ScheduleSet)
    photos: PhotoList = field(default_factory=PhotoList)

    def problems(self, open_categories: Iterable[int]) -> list[str]:
        """Return every reason this draft cannot be submitted yet."""
        issues: list[str] = []
        open_ids = set(open_categories)

        if self.category_id is None:
            issues.append("category_id is required")
        elif self.category_id not in open_ids:
            issues.append(f"category {self.category_id} is not a selected category without a service")

        if not (self.title or "").strip():
            issues.append("title is required")

        if self.price is not None and self.price < 0:
            issues.append("price cannot be negative")

        if self.duration_minutes is not None and self.duration_minutes <= 0:
            issues.append("duration_minutes must be positive")

        if self.schedule.is_empty():
            issues.append("at least one schedule day is required")

        return issues

from __future__ import annotations

import logging
from typing import Sequence

from app.application.ports.marketplace_backend import MarketplaceBackendPort
from app.domain.entities.category import CategoryRegistration, ServiceCategory
from app.domain.entities.file_upload import FileUpload
from app.domain.entities.provider import BasicInfo, ProviderDocuments, ProviderIdentity
from app.domain.entities.remote_outcome import Confirmed, Failed, RemoteOutcome
from app.domain.entities.schedule import ScheduleEntry
from app.domain.entities.service_draft import ServiceDraft
from app.domain.entities.service_record import (
    CreatedSchedule,
    PhotoUploadReport,
    ScheduleCreationReport,
    ServiceRecord,
    StoredPhoto,
)

DEFAULT_CATEGORIES = (
    ServiceCategory(id=1, name="Cleaning", description="Home and office cleaning"),
    ServiceCategory(id=2, name="Plumbing", description="Pipes, fixtures and repairs"),
    ServiceCategory(id=3, name="Electrical", description="Wiring and installations"),
    ServiceCategory(id=4, name="Beauty", description="Hair, nails and skin care"),
)


class MockMarketplaceBackend(MarketplaceBackendPort):
    """In-memory backend for local development. Every call is confirmed."""

    def __init__(self, categories: Sequence[ServiceCategory] = DEFAULT_CATEGORIES) -> None:
        self._categories = {c.id: c for c in categories}
        self._providers: dict[int, ProviderIdentity] = {}
        self._provider_categories: dict[int, set[int]] = {}
        self._services: dict[int, ServiceRecord] = {}
        self._photos: dict[int, list[StoredPhoto]] = {}
        self._schedules: dict[int, list[CreatedSchedule]] = {}
        self._sequence = 0
        self._logger = logging.getLogger(__name__)

    def _next_id(self) -> int:
        self._sequence += 1
        return self._sequence

    async def list_service_categories(self) -> RemoteOutcome[list[ServiceCategory]]:
        return Confirmed(list(self._categories.values()))

    async def register_provider(
        self,
        info: BasicInfo,
        documents: ProviderDocuments,
    ) -> RemoteOutcome[ProviderIdentity]:
        if any(p.email == info.email for p in self._providers.values()):
            return Failed(reason="Email already registered", status_code=409)
        identity = ProviderIdentity(
            id=self._next_id(),
            full_name=info.full_name,
            business_name=info.business_name,
            email=info.email,
            address=info.address,
            contact_number=info.contact_number,
            about=info.about,
        )
        self._providers[identity.id] = identity
        self._logger.info("Mock provider registered", extra={"provider_id": identity.id})
        return Confirmed(identity)

    async def register_categories(
        self,
        provider_id: int,
        category_ids: Sequence[int],
    ) -> RemoteOutcome[CategoryRegistration]:
        if provider_id not in self._providers:
            return Failed(reason="Provider not found", status_code=404)
        unknown = [cid for cid in category_ids if cid not in self._categories]
        if unknown:
            return Failed(reason=f"Unknown categories: {unknown}", status_code=400)

        registered = self._provider_categories.setdefault(provider_id, set())
        already = frozenset(cid for cid in category_ids if cid in registered)
        registered.update(category_ids)
        return Confirmed(
            CategoryRegistration(
                provider_id=provider_id,
                confirmed_ids=frozenset(category_ids),
                already_registered_ids=already,
            )
        )

    async def create_service(
        self,
        provider_id: int,
        draft: ServiceDraft,
    ) -> RemoteOutcome[ServiceRecord]:
        if draft.category_id not in self._provider_categories.get(provider_id, set()):
            return Failed(reason="Category is not registered for this provider", status_code=400)
        category = self._categories[draft.category_id]
        service = ServiceRecord(
            id=self._next_id(),
            provider_id=provider_id,
            category_id=category.id,
            title=draft.title,
            description=draft.description,
            price=draft.price,
            duration_minutes=draft.duration_minutes,
            is_active=draft.is_active,
            category_name=category.name,
        )
        self._services[service.id] = service
        return Confirmed(service)

    async def upload_service_photos(
        self,
        service_id: int,
        photos: Sequence[FileUpload],
    ) -> RemoteOutcome[PhotoUploadReport]:
        if service_id not in self._services:
            return Failed(reason="Service not found", status_code=404)
        stored = [
            StoredPhoto(id=self._next_id(), url=f"/uploads/services/{service_id}/{photo.filename}", sort_order=i)
            for i, photo in enumerate(photos)
        ]
        self._photos.setdefault(service_id, []).extend(stored)
        return Confirmed(PhotoUploadReport(stored=tuple(stored), attempted=len(photos)))

    async def create_service_schedules(
        self,
        service_id: int,
        entries: Sequence[ScheduleEntry],
    ) -> RemoteOutcome[ScheduleCreationReport]:
        if service_id not in self._services:
            return Failed(reason="Service not found", status_code=404)
        created = [
            CreatedSchedule(id=self._next_id(), weekday=e.weekday, start=e.start, end=e.end)
            for e in entries
        ]
        self._schedules.setdefault(service_id, []).extend(created)
        return Confirmed(ScheduleCreationReport(created=tuple(created)))

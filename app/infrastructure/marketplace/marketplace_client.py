from __future__ import annotations

from datetime import time
from typing import Any, Sequence

import httpx

from app.application.ports.marketplace_backend import MarketplaceBackendPort
from app.core.config import settings
from app.domain.entities.category import CategoryRegistration, ServiceCategory
from app.domain.entities.file_upload import FileUpload
from app.domain.entities.provider import BasicInfo, ProviderDocuments, ProviderIdentity
from app.domain.entities.remote_outcome import RemoteOutcome
from app.domain.entities.schedule import ScheduleEntry, Weekday
from app.domain.entities.service_draft import ServiceDraft
from app.domain.entities.service_record import (
    CreatedSchedule,
    FailedSchedule,
    FailedUpload,
    PhotoUploadReport,
    ScheduleCreationReport,
    ServiceRecord,
    StoredPhoto,
)
from app.infrastructure.marketplace import endpoints
from app.infrastructure.marketplace.remote_operation import RemoteOperation


class MarketplaceClient(MarketplaceBackendPort):
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.MARKETPLACE_API_BASE_URL,
            timeout=timeout or settings.MARKETPLACE_API_TIMEOUT_SECONDS,
        )
        self._list_categories = RemoteOperation(
            self._client, "list_service_categories", "GET", endpoints.SERVICE_CATEGORIES
        )
        self._register_provider = RemoteOperation(
            self._client, "register_provider", "POST", endpoints.PROVIDER_REGISTER
        )
        self._register_categories = RemoteOperation(
            self._client, "register_categories", "POST", endpoints.PROVIDER_REGISTER_CATEGORIES
        )
        self._create_service = RemoteOperation(
            self._client, "create_service", "POST", endpoints.PROVIDER_REGISTER_SERVICE
        )
        self._upload_photos = RemoteOperation(
            self._client, "upload_service_photos", "POST", endpoints.PROVIDER_SERVICE_UPLOAD_PHOTOS
        )
        self._create_schedules = RemoteOperation(
            self._client, "create_service_schedules", "POST", endpoints.PROVIDER_SERVICE_SCHEDULE
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_service_categories(self) -> RemoteOutcome[list[ServiceCategory]]:
        def parse(data: Any) -> list[ServiceCategory]:
            return [
                ServiceCategory(
                    id=int(item["id"]),
                    name=str(item["category_name"]),
                    description=str(item.get("description") or ""),
                )
                for item in _mapping(data, "response")["categories"]
            ]

        return await self._list_categories.execute(parse)

    async def register_provider(
        self,
        info: BasicInfo,
        documents: ProviderDocuments,
    ) -> RemoteOutcome[ProviderIdentity]:
        fields: dict[str, str] = {
            "full_name": info.full_name,
            "email": info.email,
            "address": info.address,
            "password": info.password,
            "business_name": info.business_name,
            "about": info.about,
        }
        if info.contact_number:
            fields["contact_number"] = info.contact_number

        def parse(data: Any) -> ProviderIdentity:
            provider = _mapping(_mapping(data, "response")["provider"], "provider")
            return ProviderIdentity(
                id=_positive_id(provider["id"]),
                full_name=str(provider.get("full_name") or info.full_name),
                business_name=str(provider.get("business_name") or info.business_name),
                email=str(provider.get("email") or info.email),
                address=provider.get("address") or info.address,
                contact_number=provider.get("contact_number") or info.contact_number,
                about=provider.get("about") or info.about,
                is_active=bool(provider.get("is_active", True)),
            )

        files = documents.as_files()
        if files:
            return await self._register_provider.execute(
                parse,
                data=fields,
                files={name: _file_part(upload) for name, upload in files.items()},
            )
        return await self._register_provider.execute(parse, json=fields)

    async def register_categories(
        self,
        provider_id: int,
        category_ids: Sequence[int],
    ) -> RemoteOutcome[CategoryRegistration]:
        def parse(data: Any) -> CategoryRegistration:
            data = _mapping(data, "response")
            registered = data["registered_categories"]
            if not isinstance(registered, list):
                raise TypeError("registered_categories must be a list")
            return CategoryRegistration(
                provider_id=int(data.get("provider_id", provider_id)),
                confirmed_ids=frozenset(int(item["id"]) for item in registered),
                already_registered_ids=frozenset(
                    int(item["id"]) for item in registered if item.get("already_registered")
                ),
            )

        return await self._register_categories.execute(
            parse,
            json={"provider_id": provider_id, "category_ids": list(category_ids)},
        )

    async def create_service(
        self,
        provider_id: int,
        draft: ServiceDraft,
    ) -> RemoteOutcome[ServiceRecord]:
        payload: dict[str, Any] = {
            "provider_id": provider_id,
            "category_id": draft.category_id,
            "service_title": draft.title,
            "is_active": draft.is_active,
        }
        if draft.description:
            payload["service_description"] = draft.description
        if draft.price is not None:
            payload["price_decimal"] = draft.price
        if draft.duration_minutes is not None:
            payload["duration_minutes"] = draft.duration_minutes

        def parse(data: Any) -> ServiceRecord:
            service = _mapping(_mapping(data, "response")["service"], "service")
            price = service.get("price_decimal", draft.price)
            duration = service.get("duration_minutes", draft.duration_minutes)
            return ServiceRecord(
                id=_positive_id(service["id"]),
                provider_id=int(service.get("provider_id", provider_id)),
                category_id=int(service.get("category_id", draft.category_id)),
                title=str(service.get("service_title") or draft.title),
                description=service.get("service_description", draft.description),
                price=float(price) if price is not None else None,
                duration_minutes=int(duration) if duration is not None else None,
                is_active=bool(service.get("is_active", draft.is_active)),
                category_name=str(service.get("category_name") or ""),
            )

        return await self._create_service.execute(parse, json=payload)

    async def upload_service_photos(
        self,
        service_id: int,
        photos: Sequence[FileUpload],
    ) -> RemoteOutcome[PhotoUploadReport]:
        def parse(data: Any) -> PhotoUploadReport:
            data = _mapping(data, "response")
            stored = tuple(
                StoredPhoto(
                    id=int(item["id"]),
                    url=str(item["photo_url"]),
                    sort_order=int(item.get("sort_order", 0)),
                )
                for item in data.get("photos") or []
            )
            failed = tuple(
                FailedUpload(
                    index=int(item["index"]),
                    filename=str(item.get("filename") or _photo_name(photos, int(item["index"]))),
                    error=str(item.get("error") or "Upload failed"),
                )
                for item in data.get("failed_uploads") or []
            )
            return PhotoUploadReport(
                stored=stored,
                failed=failed,
                attempted=int(data.get("total_attempted", len(photos))),
            )

        return await self._upload_photos.execute(
            parse,
            data={
                "provider_service_id": str(service_id),
                "sort_orders": ",".join(str(i) for i in range(len(photos))),
            },
            files=[("photos", _file_part(photo)) for photo in photos],
        )

    async def create_service_schedules(
        self,
        service_id: int,
        entries: Sequence[ScheduleEntry],
    ) -> RemoteOutcome[ScheduleCreationReport]:
        def parse(data: Any) -> ScheduleCreationReport:
            data = _mapping(data, "response")
            created = tuple(
                CreatedSchedule(
                    id=int(item["id"]),
                    weekday=Weekday.parse(item["schedule_day"]),
                    start=time.fromisoformat(str(item["start_time"])),
                    end=time.fromisoformat(str(item["end_time"])),
                )
                for item in data.get("schedules") or []
            )
            failed = tuple(
                FailedSchedule(
                    entry=_submitted_entry(entries, item),
                    error=str(item.get("error") or "Schedule creation failed"),
                )
                for item in data.get("failed_schedules") or []
            )
            return ScheduleCreationReport(created=created, failed=failed)

        return await self._create_schedules.execute(
            parse,
            json={
                "provider_service_id": service_id,
                "schedules": [
                    {
                        "schedule_day": entry.weekday.value,
                        "start_time": f"{entry.start:%H:%M}",
                        "end_time": f"{entry.end:%H:%M}",
                    }
                    for entry in entries
                ],
            },
        )


def _file_part(upload: FileUpload) -> tuple[str, bytes, str]:
    return (upload.filename, upload.content, upload.content_type)


def _positive_id(value: Any) -> int:
    identifier = int(value)
    if identifier <= 0:
        raise ValueError(f"invalid id {value!r}")
    return identifier


def _photo_name(photos: Sequence[FileUpload], index: int) -> str:
    if 0 <= index < len(photos):
        return photos[index].filename
    return f"photo #{index}"


def _submitted_entry(entries: Sequence[ScheduleEntry], item: dict[str, Any]) -> ScheduleEntry:
    index = item.get("index")
    if isinstance(index, int) and 0 <= index < len(entries):
        return entries[index]
    # Fall back to the weekday the backend echoed; each weekday appears once.
    day = Weekday.parse((item.get("schedule_data") or {}).get("schedule_day", ""))
    for entry in entries:
        if entry.weekday == day:
            return entry
    raise ValueError(f"failed schedule does not match a submitted entry: {item!r}")


def _mapping(value: Any, label: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeError(f"{label} must be an object, got {type(value).__name__}")
    return value

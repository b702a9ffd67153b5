from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from app.domain.entities.category import CategoryRegistration, ServiceCategory
from app.domain.entities.file_upload import FileUpload
from app.domain.entities.provider import BasicInfo, ProviderDocuments, ProviderIdentity
from app.domain.entities.remote_outcome import RemoteOutcome
from app.domain.entities.schedule import ScheduleEntry
from app.domain.entities.service_draft import ServiceDraft
from app.domain.entities.service_record import PhotoUploadReport, ScheduleCreationReport, ServiceRecord


class MarketplaceBackendPort(ABC):
    """
    REST backend operations used by provider onboarding.

    Adapters never raise for network or HTTP problems; every call returns a
    RemoteOutcome so the workflow decides what each failure means.
    """

    @abstractmethod
    async def list_service_categories(self) -> RemoteOutcome[list[ServiceCategory]]:
        raise NotImplementedError

    @abstractmethod
    async def register_provider(
        self,
        info: BasicInfo,
        documents: ProviderDocuments,
    ) -> RemoteOutcome[ProviderIdentity]:
        """Create the provider account. Sent as multipart when documents are present."""
        raise NotImplementedError

    @abstractmethod
    async def register_categories(
        self,
        provider_id: int,
        category_ids: Sequence[int],
    ) -> RemoteOutcome[CategoryRegistration]:
        """Associate categories with a provider. Idempotent for ids already registered."""
        raise NotImplementedError

    @abstractmethod
    async def create_service(
        self,
        provider_id: int,
        draft: ServiceDraft,
    ) -> RemoteOutcome[ServiceRecord]:
        """Create one service. May be Ambiguous when the success body is unreadable."""
        raise NotImplementedError

    @abstractmethod
    async def upload_service_photos(
        self,
        service_id: int,
        photos: Sequence[FileUpload],
    ) -> RemoteOutcome[PhotoUploadReport]:
        """Upload photos in order. Partial success is reported per file."""
        raise NotImplementedError

    @abstractmethod
    async def create_service_schedules(
        self,
        service_id: int,
        entries: Sequence[ScheduleEntry],
    ) -> RemoteOutcome[ScheduleCreationReport]:
        """Create weekly schedule entries. Partial success is reported per entry."""
        raise NotImplementedError

from __future__ import annotations

import logging
from dataclasses import replace

from app.application.exceptions import RemoteOperationError
from app.application.ports.marketplace_backend import MarketplaceBackendPort
from app.domain.entities.remote_outcome import Ambiguous, Confirmed, Failed
from app.domain.entities.service_draft import ServiceDraft
from app.domain.entities.service_entry import AmbiguityNotice, ServiceEntryResult, SubmissionStatus
from app.domain.entities.service_record import (
    PLACEHOLDER_SERVICE_ID,
    FailedSchedule,
    PhotoUploadReport,
    ScheduleCreationReport,
    ServiceRecord,
)

CREATE_SERVICE = "create_service"
UPLOAD_PHOTOS = "upload_service_photos"
CREATE_SCHEDULES = "create_service_schedules"

CORRECTIVE_STEPS = (
    "Check backend server logs for errors",
    "Verify the /api/auth/provider/register-service endpoint",
    "Check if the service was actually created in the database",
)

AMBIGUOUS_PROMPT = (
    "The service may have been created but its confirmation could not be read.\n\n"
    "This is a backend issue. Please check the server logs.\n\n"
    "Would you like to continue anyway?\n"
    "(Note: photos and schedules will not be uploaded for this service)"
)

SCHEDULE_FAILED_NOTICE = "Service created but schedule creation failed. You may need to set up schedules later."
SCHEDULE_UNCONFIRMED_NOTICE = "Service created but schedule creation could not be confirmed. Please review its schedules later."


class ServiceEntryOrchestrator:
    """
    Materializes one ServiceDraft on the backend in three ordered phases:

    1. create the service (mandatory)
    2. upload photos (best effort, needs a confirmed service id)
    3. create schedules (mandatory input, best effort execution, needs a confirmed id)

    The phases are not atomic and nothing is rolled back. A confirmed failure
    in phase 1 raises ``RemoteOperationError`` and nothing else runs. An
    ambiguous phase 1 returns an ``AWAITING_ACKNOWLEDGEMENT`` result holding a
    provisional service; ``resolve_ambiguous`` finishes or drops it.
    """

    def __init__(self, backend: MarketplaceBackendPort) -> None:
        self._backend = backend
        self._logger = logging.getLogger(__name__)

    async def submit(self, provider_id: int, draft: ServiceDraft) -> ServiceEntryResult:
        if draft.category_id is None:
            raise ValueError("draft.category_id is required")

        outcome = await self._backend.create_service(provider_id, draft)

        if isinstance(outcome, Failed):
            self._logger.warning(
                "Service creation failed",
                extra={
                    "operation": CREATE_SERVICE,
                    "provider_id": provider_id,
                    "category_id": draft.category_id,
                    "reason": outcome.reason,
                },
            )
            raise RemoteOperationError(CREATE_SERVICE, outcome.reason, outcome.status_code)

        if isinstance(outcome, Ambiguous):
            return self._provisional_result(provider_id, draft, outcome)

        if not isinstance(outcome, Confirmed):
            raise TypeError(f"Unexpected outcome: {outcome!r}")

        service = outcome.payload
        self._logger.info(
            "Service created",
            extra={"operation": CREATE_SERVICE, "service_id": service.id, "category_id": draft.category_id},
        )
        return await self._run_dependents(service, draft)

    async def resolve_ambiguous(
        self,
        pending: ServiceEntryResult,
        draft: ServiceDraft,
        accept: bool,
    ) -> ServiceEntryResult:
        if pending.status != SubmissionStatus.AWAITING_ACKNOWLEDGEMENT:
            raise ValueError("Only a result awaiting acknowledgement can be resolved")

        if not accept:
            self._logger.info(
                "Unconfirmed service declined by user",
                extra={"operation": CREATE_SERVICE, "category_id": pending.category_id},
            )
            return replace(pending, status=SubmissionStatus.DECLINED)

        self._logger.warning(
            "Continuing with unconfirmed service",
            extra={"operation": CREATE_SERVICE, "category_id": pending.category_id},
        )
        resolved = await self._run_dependents(pending.service, draft)
        return replace(resolved, ambiguity=pending.ambiguity)

    def _provisional_result(
        self,
        provider_id: int,
        draft: ServiceDraft,
        outcome: Ambiguous[ServiceRecord],
    ) -> ServiceEntryResult:
        self._logger.error(
            "Backend returned a success status but the response body could not be read",
            extra={
                "operation": CREATE_SERVICE,
                "status": outcome.status_code,
                "reason": outcome.reason,
                "corrective_steps": " | ".join(CORRECTIVE_STEPS),
            },
        )

        placeholder = ServiceRecord(
            id=PLACEHOLDER_SERVICE_ID,
            provider_id=provider_id,
            category_id=draft.category_id,  # type: ignore[arg-type]
            title=draft.title,
            description=draft.description,
            price=draft.price,
            duration_minutes=draft.duration_minutes,
            is_active=draft.is_active,
            confirmed=False,
        )
        return ServiceEntryResult(
            status=SubmissionStatus.AWAITING_ACKNOWLEDGEMENT,
            category_id=placeholder.category_id,
            service=placeholder,
            ambiguity=AmbiguityNotice(
                operation=CREATE_SERVICE,
                reason=outcome.reason,
                prompt=AMBIGUOUS_PROMPT,
                corrective_steps=CORRECTIVE_STEPS,
                status_code=outcome.status_code,
            ),
        )

    async def _run_dependents(
        self,
        service: ServiceRecord,
        draft: ServiceDraft,
    ) -> ServiceEntryResult:
        notices: list[str] = []
        photos = await self._upload_photos(service, draft, notices)
        schedules = await self._create_schedules(service, draft, notices)
        return ServiceEntryResult(
            status=SubmissionStatus.COMPLETED,
            category_id=service.category_id,
            service=service,
            photos=photos,
            schedules=schedules,
            notices=tuple(notices),
        )

    async def _upload_photos(
        self,
        service: ServiceRecord,
        draft: ServiceDraft,
        notices: list[str],
    ) -> PhotoUploadReport | None:
        files = draft.photos.files()
        if not files:
            return None

        if not service.confirmed:
            self._logger.warning(
                "Skipping photo upload due to unconfirmed service creation",
                extra={"operation": UPLOAD_PHOTOS, "category_id": service.category_id},
            )
            notices.append("Photos were not uploaded because the service could not be confirmed.")
            return None

        outcome = await self._backend.upload_service_photos(service.id, files)

        if isinstance(outcome, Confirmed):
            report = outcome.payload
            for failed in report.failed:
                notices.append(f"Photo {failed.filename} was not uploaded: {failed.error}")
            if report.failed:
                self._logger.warning(
                    "Some photos failed to upload",
                    extra={"operation": UPLOAD_PHOTOS, "service_id": service.id, "reason": len(report.failed)},
                )
            return report

        reason = outcome.reason
        self._logger.warning(
            "Photo upload failed",
            extra={"operation": UPLOAD_PHOTOS, "service_id": service.id, "reason": reason},
        )
        notices.append(f"Photo upload failed: {reason}")
        return None

    async def _create_schedules(
        self,
        service: ServiceRecord,
        draft: ServiceDraft,
        notices: list[str],
    ) -> ScheduleCreationReport | None:
        entries = draft.schedule.entries

        if not service.confirmed:
            self._logger.warning(
                "Skipping schedule creation due to unconfirmed service creation",
                extra={"operation": CREATE_SCHEDULES, "category_id": service.category_id},
            )
            notices.append("Schedules were not created because the service could not be confirmed.")
            return None

        outcome = await self._backend.create_service_schedules(service.id, entries)

        if isinstance(outcome, Confirmed):
            report = outcome.payload
            for failed in report.failed:
                notices.append(f"Schedule for {failed.entry.label()} was not created: {failed.error}")
            if report.failed:
                self._logger.warning(
                    "Some schedules failed",
                    extra={
                        "operation": CREATE_SCHEDULES,
                        "service_id": service.id,
                        "reason": ", ".join(f.entry.weekday.value for f in report.failed),
                    },
                )
            return report

        if isinstance(outcome, Ambiguous):
            self._logger.error(
                "Schedule creation response unreadable",
                extra={"operation": CREATE_SCHEDULES, "service_id": service.id, "reason": outcome.reason},
            )
            notices.append(SCHEDULE_UNCONFIRMED_NOTICE)
            return None

        self._logger.error(
            "Schedule creation failed",
            extra={"operation": CREATE_SCHEDULES, "service_id": service.id, "reason": outcome.reason},
        )
        notices.append(SCHEDULE_FAILED_NOTICE)
        # Every submitted entry needs manual follow-up.
        return ScheduleCreationReport(
            created=(),
            failed=tuple(FailedSchedule(entry=entry, error=outcome.reason) for entry in entries),
        )

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Iterable, Iterator

from app.application.exceptions import (
    InvalidStepError,
    OnboardingBusyError,
    OnboardingValidationError,
)
from app.application.ports.auth_session import AuthSessionPort, AuthStatePort
from app.application.ports.navigation import NavigationPort
from app.application.use_cases.basic_registration import BasicRegistrationStep
from app.application.use_cases.category_selection import CategorySelectionStep
from app.application.use_cases.service_entry import ServiceEntryOrchestrator
from app.domain.entities.auth_session import AuthSession
from app.domain.entities.category import CategoryRegistration, ServiceCategory
from app.domain.entities.file_upload import FileUpload
from app.domain.entities.onboarding_session import CompletionTracker, OnboardingSession, OnboardingStep
from app.domain.entities.provider import BasicInfo, ProviderDocuments, ProviderIdentity
from app.domain.entities.schedule import ScheduleEntry, Weekday
from app.domain.entities.service_draft import ServiceDraft
from app.domain.entities.service_entry import ServiceEntryResult, SubmissionStatus

_DRAFT_FIELDS = ("category_id", "title", "description", "price", "duration_minutes", "is_active")
_REQUIRED_DRAFT_FIELDS = ("title", "is_active")


@dataclass(frozen=True)
class CompletionSummary:
    identity: ProviderIdentity
    auth_session: AuthSession
    completed_categories: frozenset[int]
    selected_categories: frozenset[int]
    home_path: str

    @property
    def services_set_up(self) -> int:
        return len(self.completed_categories)

    @property
    def skipped_categories(self) -> list[int]:
        return sorted(self.selected_categories - self.completed_categories)


class OnboardingController:
    """
    Drives one provider through onboarding:

    Unregistered -> BasicInfoSubmitted -> CategoriesSelected -> ServiceEntryLoop -> Completed

    Transitions only move forward. Validation and confirmed remote failures
    raise and leave the session exactly as it was so the caller can retry.
    """

    def __init__(
        self,
        session: OnboardingSession,
        registration: BasicRegistrationStep,
        categories: CategorySelectionStep,
        service_entry: ServiceEntryOrchestrator,
        auth: AuthSessionPort,
        auth_state: AuthStatePort,
        navigator: NavigationPort,
    ) -> None:
        self._session = session
        self._registration = registration
        self._categories = categories
        self._service_entry = service_entry
        self._auth = auth
        self._auth_state = auth_state
        self._navigator = navigator
        self._logger = logging.getLogger(__name__)

    @property
    def session(self) -> OnboardingSession:
        return self._session

    @property
    def step(self) -> OnboardingStep:
        return self._session.step

    @property
    def draft(self) -> ServiceDraft:
        return self._session.draft

    async def submit_basic_info(self, info: BasicInfo, documents: ProviderDocuments) -> ProviderIdentity:
        self._require_step(OnboardingStep.UNREGISTERED)
        with self._in_flight("submit_basic_info"):
            identity = await self._registration.execute(info, documents)
        self._session.identity = identity
        self._transition(OnboardingStep.BASIC_INFO_SUBMITTED)
        return identity

    async def available_categories(self) -> list[ServiceCategory]:
        with self._in_flight("available_categories"):
            return await self._categories.available_categories()

    def toggle_category(self, category_id: int) -> frozenset[int]:
        if not self._session.selection_editable:
            raise InvalidStepError(f"Categories cannot be changed in step {self.step.value}")
        self._require_idle()
        selection = self._session.selection
        if category_id in selection:
            selection.discard(category_id)
        else:
            selection.add(category_id)
        return frozenset(selection)

    async def submit_categories(self, selection: Iterable[int] | None = None) -> CategoryRegistration:
        if not self._session.selection_editable:
            raise InvalidStepError(f"Categories cannot be submitted in step {self.step.value}")
        self._require_idle()
        if selection is not None:
            self._session.selection = set(selection)
        if not self._session.selection:
            raise OnboardingValidationError(["Please select at least one category"])

        identity = self._require_identity()
        if self.step == OnboardingStep.BASIC_INFO_SUBMITTED:
            self._transition(OnboardingStep.CATEGORIES_SELECTED)

        submitted = frozenset(self._session.selection)
        with self._in_flight("submit_categories"):
            registration = await self._categories.execute(identity.id, submitted)

        self._session.tracker = CompletionTracker(submitted)
        self._transition(OnboardingStep.SERVICE_ENTRY_LOOP)
        return registration

    def update_draft(self, **fields: object) -> ServiceDraft:
        draft = self._editable_draft()
        unknown = sorted(set(fields) - set(_DRAFT_FIELDS))
        if unknown:
            raise OnboardingValidationError([f"Unknown draft field: {name}" for name in unknown])
        cleared = [name for name in _REQUIRED_DRAFT_FIELDS if name in fields and fields[name] is None]
        if cleared:
            raise OnboardingValidationError([f"{name} cannot be null" for name in cleared])
        for name, value in fields.items():
            setattr(draft, name, value)
        return draft

    def add_schedule_entry(
        self,
        start: time | str,
        end: time | str,
        weekday: Weekday | str | None = None,
    ) -> ScheduleEntry:
        schedule = self._editable_draft().schedule
        day = weekday if weekday is not None else schedule.next_suggested_weekday()
        return schedule.add_entry(day, start, end)

    def update_schedule_entry(self, entry_id: str, field: str, value: Weekday | time | str) -> ScheduleEntry:
        return self._editable_draft().schedule.update_entry(entry_id, field, value)

    def remove_schedule_entry(self, entry_id: str) -> bool:
        return self._editable_draft().schedule.remove_entry(entry_id)

    def attach_photo(self, photo: FileUpload) -> str:
        return self._editable_draft().photos.add(photo)

    def remove_photo(self, photo_id: str) -> bool:
        return self._editable_draft().photos.remove(photo_id)

    def reset_draft(self) -> ServiceDraft:
        self._require_idle()
        self._require_no_pending()
        self._session.reset_draft()
        return self._session.draft

    async def submit_current_draft(self) -> ServiceEntryResult:
        self._require_step(OnboardingStep.SERVICE_ENTRY_LOOP)
        self._require_no_pending()
        identity = self._require_identity()

        draft = self._session.draft
        problems = draft.problems(self._session.remaining_categories)
        if problems:
            raise OnboardingValidationError(problems)

        with self._in_flight("submit_current_draft"):
            result = await self._service_entry.submit(identity.id, draft)

        if result.status == SubmissionStatus.AWAITING_ACKNOWLEDGEMENT:
            self._session.pending = result
            self._logger.warning(
                "Service submission awaiting acknowledgement",
                extra={"step": self.step.value, "category_id": result.category_id},
            )
            return result

        self._complete_draft(result)
        return result

    async def acknowledge_ambiguous(self, accept: bool) -> ServiceEntryResult:
        pending = self._session.pending
        if pending is None:
            raise InvalidStepError("No service submission is awaiting acknowledgement")

        with self._in_flight("acknowledge_ambiguous"):
            result = await self._service_entry.resolve_ambiguous(pending, self._session.draft, accept)

        self._session.pending = None
        if result.status == SubmissionStatus.COMPLETED:
            self._complete_draft(result)
        return result

    async def finish(self) -> CompletionSummary:
        self._require_step(OnboardingStep.SERVICE_ENTRY_LOOP)
        self._require_no_pending()
        if self._session.tracker.is_empty():
            raise InvalidStepError("At least one service must be submitted before finishing")
        identity = self._require_identity()

        with self._in_flight("finish"):
            auth_session = await self._establish_session(identity)

        self._session.auth_session = auth_session
        self._transition(OnboardingStep.COMPLETED)
        self._auth_state.publish(auth_session)
        home_path = self._navigator.go_to_provider_home(identity)

        self._logger.info(
            "Provider onboarding completed",
            extra={"provider_id": identity.id, "reason": f"{len(self._session.tracker)} service(s) set up"},
        )
        return CompletionSummary(
            identity=identity,
            auth_session=auth_session,
            completed_categories=self._session.tracker.completed,
            selected_categories=self._session.tracker.selection,
            home_path=home_path,
        )

    async def _establish_session(self, identity: ProviderIdentity) -> AuthSession:
        try:
            return await self._auth.establish_session(identity)
        except Exception as e:
            # The provider and its services already exist, so onboarding still completes.
            self._logger.warning(
                "Session could not be established, using fallback session",
                extra={"provider_id": identity.id, "reason": str(e)},
            )
            return AuthSession(
                access_token=f"provider_{identity.id}_fallback",
                identity=identity,
                established_at=datetime.now(timezone.utc),
                fallback=True,
            )

    def _complete_draft(self, result: ServiceEntryResult) -> None:
        self._session.tracker.mark(result.category_id)
        self._session.services.append(result.service)
        self._session.reset_draft()
        self._logger.info(
            "Service entry completed",
            extra={
                "step": self.step.value,
                "category_id": result.category_id,
                "service_id": result.service.id,
                "status": "provisional" if result.provisional else "confirmed",
            },
        )

    def _editable_draft(self) -> ServiceDraft:
        self._require_step(OnboardingStep.SERVICE_ENTRY_LOOP)
        self._require_idle()
        self._require_no_pending()
        return self._session.draft

    def _transition(self, target: OnboardingStep) -> None:
        previous = self._session.step
        self._session.step = target
        self._logger.info("Onboarding step changed", extra={"step": f"{previous.value}->{target.value}"})

    def _require_step(self, expected: OnboardingStep) -> None:
        if self._session.step != expected:
            raise InvalidStepError(
                f"Action requires step {expected.value}, current step is {self._session.step.value}"
            )

    def _require_identity(self) -> ProviderIdentity:
        if self._session.identity is None:
            raise InvalidStepError("Provider has not been registered yet")
        return self._session.identity

    def _require_no_pending(self) -> None:
        if self._session.pending is not None:
            raise InvalidStepError("Acknowledge the unconfirmed service before continuing")

    def _require_idle(self) -> None:
        if self._session.in_flight is not None:
            raise OnboardingBusyError(f"{self._session.in_flight} is still in progress")

    @contextmanager
    def _in_flight(self, action: str) -> Iterator[None]:
        self._require_idle()
        self._session.in_flight = action
        try:
            yield
        finally:
            self._session.in_flight = None

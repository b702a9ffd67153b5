from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from app.domain.entities.auth_session import AuthSession
from app.domain.entities.provider import ProviderIdentity
from app.domain.entities.service_draft import ServiceDraft
from app.domain.entities.service_entry import ServiceEntryResult
from app.domain.entities.service_record import ServiceRecord


class OnboardingStep(str, Enum):
    UNREGISTERED = "unregistered"
    BASIC_INFO_SUBMITTED = "basic_info_submitted"
    CATEGORIES_SELECTED = "categories_selected"
    SERVICE_ENTRY_LOOP = "service_entry_loop"
    COMPLETED = "completed"


class CompletionTracker:
    """Selected categories that already have a submitted service. Only grows."""

    def __init__(self, selection: Iterable[int] = ()) -> None:
        self._selection = frozenset(selection)
        self._completed: set[int] = set()

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._completed

    def __len__(self) -> int:
        return len(self._completed)

    @property
    def completed(self) -> frozenset[int]:
        return frozenset(self._completed)

    @property
    def selection(self) -> frozenset[int]:
        return self._selection

    def mark(self, category_id: int) -> None:
        if category_id not in self._selection:
            raise ValueError(f"Category {category_id} is not part of the selection")
        self._completed.add(category_id)

    def remaining(self) -> list[int]:
        return sorted(self._selection - self._completed)

    def is_empty(self) -> bool:
        return not self._completed

    def is_full(self) -> bool:
        return bool(self._selection) and self._completed == set(self._selection)


@dataclass
class OnboardingSession:
    """
    Everything one onboarding run knows, held in memory only.

    The controller is the only writer; every field changes through one of its
    documented transitions.
    """

    session_id: str
    step: OnboardingStep = OnboardingStep.UNREGISTERED
    identity: ProviderIdentity | None = None
    selection: set[int] = field(default_factory=set)
    tracker: CompletionTracker = field(default_factory=CompletionTracker)
    draft: ServiceDraft = field(default_factory=ServiceDraft)
    services: list[ServiceRecord] = field(default_factory=list)
    pending: ServiceEntryResult | None = None  # awaiting acknowledgement
    auth_session: AuthSession | None = None
    in_flight: str | None = None

    @property
    def selection_editable(self) -> bool:
        return self.step in (OnboardingStep.BASIC_INFO_SUBMITTED, OnboardingStep.CATEGORIES_SELECTED)

    @property
    def remaining_categories(self) -> list[int]:
        return self.tracker.remaining()

    @property
    def can_add_service(self) -> bool:
        return (
            self.step == OnboardingStep.SERVICE_ENTRY_LOOP
            and self.pending is None
            and not self.tracker.is_full()
        )

    @property
    def can_finish(self) -> bool:
        return (
            self.step == OnboardingStep.SERVICE_ENTRY_LOOP
            and self.pending is None
            and not self.tracker.is_empty()
        )

    def reset_draft(self) -> None:
        self.draft = ServiceDraft()

"""
Shared fixtures: a scripted backend and ready-made onboarding controllers.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from app.application.use_cases.basic_registration import BasicRegistrationStep
from app.application.use_cases.category_selection import CategorySelectionStep
from app.application.use_cases.onboarding_controller import OnboardingController
from app.application.use_cases.service_entry import ServiceEntryOrchestrator
from app.domain.entities.file_upload import FileUpload
from app.domain.entities.onboarding_session import OnboardingSession
from app.domain.entities.provider import BasicInfo, ProviderDocuments
from app.infrastructure.auth.auth_state_store import AuthStateStore
from app.infrastructure.auth.local_auth_session import LocalAuthSession
from app.infrastructure.marketplace.mock_backend import MockMarketplaceBackend
from app.infrastructure.navigation.logging_navigator import LoggingNavigator


class ScriptedBackend(MockMarketplaceBackend):
    """
    Mock backend whose answers can be overridden per operation.

    Queued outcomes are returned first, in order; once a queue is empty the
    in-memory mock answers. Every call is recorded in ``calls``. A held
    operation waits until its gate is set.
    """

    def __init__(self) -> None:
        super().__init__()
        self.script: dict[str, list[Any]] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[str] = []

    def queue(self, operation: str, *outcomes: Any) -> None:
        self.script.setdefault(operation, []).extend(outcomes)

    def hold(self, operation: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[operation] = gate
        return gate

    def called(self, operation: str) -> int:
        return self.calls.count(operation)

    async def _scripted(self, operation: str) -> Any:
        self.calls.append(operation)
        gate = self.gates.get(operation)
        if gate is not None:
            await gate.wait()
        queued = self.script.get(operation)
        return queued.pop(0) if queued else None

    async def list_service_categories(self):
        return await self._scripted("list_service_categories") or await super().list_service_categories()

    async def register_provider(self, info, documents):
        return await self._scripted("register_provider") or await super().register_provider(info, documents)

    async def register_categories(self, provider_id, category_ids):
        return await self._scripted("register_categories") or await super().register_categories(provider_id, category_ids)

    async def create_service(self, provider_id, draft):
        return await self._scripted("create_service") or await super().create_service(provider_id, draft)

    async def upload_service_photos(self, service_id, photos):
        return await self._scripted("upload_service_photos") or await super().upload_service_photos(service_id, photos)

    async def create_service_schedules(self, service_id, entries):
        return (
            await self._scripted("create_service_schedules")
            or await super().create_service_schedules(service_id, entries)
        )


def make_document(name: str) -> FileUpload:
    return FileUpload(filename=f"{name}.png", content=b"\x89PNG", content_type="image/png")


@pytest.fixture
def basic_info() -> BasicInfo:
    return BasicInfo(
        full_name="Maria Santos",
        email="maria@example.com",
        address="12 Mabini St, Manila",
        password="secret123",
        confirm_password="secret123",
        business_name="Santos Cleaning Co.",
        about="Residential and office cleaning",
        contact_number="09171234567",
    )


@pytest.fixture
def documents() -> ProviderDocuments:
    return ProviderDocuments(
        bir_id_front=make_document("bir_front"),
        bir_id_back=make_document("bir_back"),
        business_permit=make_document("permit"),
        image_logo=make_document("logo"),
    )


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def auth_state() -> AuthStateStore:
    return AuthStateStore()


@pytest.fixture
def navigator() -> LoggingNavigator:
    return LoggingNavigator(home_path="/provider/home")


@pytest.fixture
def controller(backend, auth_state, navigator) -> OnboardingController:
    return OnboardingController(
        session=OnboardingSession(session_id="test-session"),
        registration=BasicRegistrationStep(backend),
        categories=CategorySelectionStep(backend),
        service_entry=ServiceEntryOrchestrator(backend),
        auth=LocalAuthSession(),
        auth_state=auth_state,
        navigator=navigator,
    )


@pytest.fixture
def in_service_loop(controller, basic_info, documents) -> OnboardingController:
    """Controller with a registered provider and categories {1, 2} selected."""
    asyncio.run(controller.submit_basic_info(basic_info, documents))
    asyncio.run(controller.submit_categories([1, 2]))
    return controller

from functools import lru_cache
import logging

from app.application.ports.marketplace_backend import MarketplaceBackendPort
from app.application.ports.onboarding_store import OnboardingStorePort
from app.application.use_cases.basic_registration import BasicRegistrationStep
from app.application.use_cases.category_selection import CategorySelectionStep
from app.application.use_cases.onboarding_controller import OnboardingController
from app.application.use_cases.service_entry import ServiceEntryOrchestrator
from app.core.config import settings
from app.domain.entities.onboarding_session import OnboardingSession
from app.infrastructure.auth.auth_state_store import AuthStateStore
from app.infrastructure.auth.local_auth_session import LocalAuthSession
from app.infrastructure.marketplace.marketplace_client import MarketplaceClient
from app.infrastructure.marketplace.mock_backend import MockMarketplaceBackend
from app.infrastructure.navigation.logging_navigator import LoggingNavigator
from app.infrastructure.store.memory_onboarding_store import MemoryOnboardingStore


_onboarding_store: MemoryOnboardingStore | None = None


@lru_cache
def get_backend() -> MarketplaceBackendPort:
    logger = logging.getLogger(__name__)
    choice = settings.MARKETPLACE_BACKEND.strip().lower()
    if not choice:
        choice = "mock" if settings.ENV.lower() in {"dev", "local"} else "http"

    if choice == "mock":
        logger.info("Using MockMarketplaceBackend (ENV=%s)", settings.ENV)
        return MockMarketplaceBackend()
    if choice == "http":
        logger.info("Using MarketplaceClient base_url=%s", settings.MARKETPLACE_API_BASE_URL)
        return MarketplaceClient()
    raise ValueError(f"Unknown MARKETPLACE_BACKEND: {settings.MARKETPLACE_BACKEND!r}")


@lru_cache
def get_auth_state() -> AuthStateStore:
    return AuthStateStore()


def get_onboarding_store() -> OnboardingStorePort:
    global _onboarding_store
    if _onboarding_store is None:
        _onboarding_store = MemoryOnboardingStore()
    return _onboarding_store


def build_controller(
    session: OnboardingSession,
    backend: MarketplaceBackendPort | None = None,
) -> OnboardingController:
    backend = backend or get_backend()
    return OnboardingController(
        session=session,
        registration=BasicRegistrationStep(backend, password_min_length=settings.PASSWORD_MIN_LENGTH),
        categories=CategorySelectionStep(backend),
        service_entry=ServiceEntryOrchestrator(backend),
        auth=LocalAuthSession(),
        auth_state=get_auth_state(),
        navigator=LoggingNavigator(),
    )


def get_controller_factory():
    return build_controller

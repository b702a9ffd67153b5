from abc import ABC, abstractmethod

from app.domain.entities.onboarding_session import OnboardingSession


class OnboardingStorePort(ABC):
    @abstractmethod
    def create(self) -> OnboardingSession:
        raise NotImplementedError

    @abstractmethod
    def get(self, session_id: str) -> OnboardingSession | None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, session_id: str) -> None:
        raise NotImplementedError

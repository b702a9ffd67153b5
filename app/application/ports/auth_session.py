from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from app.domain.entities.auth_session import AuthSession
from app.domain.entities.provider import ProviderIdentity

AuthListener = Callable[[AuthSession | None], None]


class AuthSessionPort(ABC):
    @abstractmethod
    async def establish_session(self, identity: ProviderIdentity) -> AuthSession:
        """Return an authenticated session for a freshly onboarded provider."""
        raise NotImplementedError


class AuthStatePort(ABC):
    """Observable holder of the current authenticated session."""

    @abstractmethod
    def current(self) -> AuthSession | None:
        raise NotImplementedError

    @abstractmethod
    def publish(self, session: AuthSession | None) -> None:
        raise NotImplementedError

    @abstractmethod
    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        raise NotImplementedError

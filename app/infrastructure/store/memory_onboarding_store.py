from __future__ import annotations

import uuid

from app.application.ports.onboarding_store import OnboardingStorePort
from app.domain.entities.onboarding_session import OnboardingSession


class MemoryOnboardingStore(OnboardingStorePort):
    def __init__(self) -> None:
        self._sessions: dict[str, OnboardingSession] = {}

    def create(self) -> OnboardingSession:
        session = OnboardingSession(session_id=uuid.uuid4().hex)
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> OnboardingSession | None:
        return self._sessions.get(session_id)

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

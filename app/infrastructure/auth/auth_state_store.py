from __future__ import annotations

import logging
import threading
from typing import Callable

from app.application.ports.auth_session import AuthListener, AuthStatePort
from app.domain.entities.auth_session import AuthSession


class AuthStateStore(AuthStatePort):
    def __init__(self) -> None:
        self._current: AuthSession | None = None
        self._listeners: list[AuthListener] = []
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def current(self) -> AuthSession | None:
        return self._current

    def publish(self, session: AuthSession | None) -> None:
        with self._lock:
            self._current = session
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(session)
            except Exception as e:
                # One broken subscriber must not hide the session from the others.
                self._logger.exception("Auth listener failed", extra={"reason": str(e)})

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

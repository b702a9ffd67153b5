from __future__ import annotations

import logging

from app.application.ports.navigation import NavigationPort
from app.core.config import settings
from app.domain.entities.provider import ProviderIdentity


class LoggingNavigator(NavigationPort):
    def __init__(self, home_path: str | None = None) -> None:
        self._home_path = home_path or settings.PROVIDER_HOME_PATH
        self._logger = logging.getLogger(__name__)
        self.last_destination: str | None = None

    def go_to_provider_home(self, identity: ProviderIdentity) -> str:
        self.last_destination = self._home_path
        self._logger.info("Navigate to provider home", extra={"provider_id": identity.id, "reason": self._home_path})
        return self._home_path

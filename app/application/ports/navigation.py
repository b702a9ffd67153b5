from abc import ABC, abstractmethod

from app.domain.entities.provider import ProviderIdentity


class NavigationPort(ABC):
    @abstractmethod
    def go_to_provider_home(self, identity: ProviderIdentity) -> str:
        """Hand navigation off to the provider home view. Returns the destination path."""
        raise NotImplementedError

from __future__ import annotations

import logging
from typing import Iterable

from app.application.exceptions import OnboardingValidationError, RemoteOperationError
from app.application.ports.marketplace_backend import MarketplaceBackendPort
from app.domain.entities.category import CategoryRegistration, ServiceCategory
from app.domain.entities.remote_outcome import Ambiguous, Confirmed, Failed


class CategorySelectionStep:
    def __init__(self, backend: MarketplaceBackendPort) -> None:
        self._backend = backend
        self._logger = logging.getLogger(__name__)

    async def available_categories(self) -> list[ServiceCategory]:
        outcome = await self._backend.list_service_categories()
        if isinstance(outcome, Confirmed):
            return list(outcome.payload)
        if isinstance(outcome, Failed):
            raise RemoteOperationError("list_service_categories", outcome.reason, outcome.status_code)
        raise RemoteOperationError(
            "list_service_categories",
            "Service categories could not be loaded. Please try again.",
            outcome.status_code,
        )

    async def execute(self, provider_id: int, category_ids: Iterable[int]) -> CategoryRegistration:
        selected = sorted(set(category_ids))
        if not selected:
            raise OnboardingValidationError(["Please select at least one category"])

        outcome = await self._backend.register_categories(provider_id, selected)

        if isinstance(outcome, Confirmed):
            registration = outcome.payload
            if registration.already_registered_ids:
                self._logger.info(
                    "Some categories were already registered",
                    extra={
                        "provider_id": provider_id,
                        "reason": sorted(registration.already_registered_ids),
                    },
                )
            return registration
        if isinstance(outcome, Failed):
            raise RemoteOperationError("register_categories", outcome.reason, outcome.status_code)
        if isinstance(outcome, Ambiguous):
            raise RemoteOperationError(
                "register_categories",
                "Category registration could not be confirmed. Please try again.",
                outcome.status_code,
            )
        raise TypeError(f"Unexpected outcome: {outcome!r}")

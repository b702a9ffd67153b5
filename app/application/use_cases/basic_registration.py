from __future__ import annotations

import logging

from app.application.exceptions import OnboardingValidationError, RemoteOperationError
from app.application.ports.marketplace_backend import MarketplaceBackendPort
from app.domain.entities.provider import BasicInfo, ProviderDocuments, ProviderIdentity
from app.domain.entities.remote_outcome import Ambiguous, Confirmed, Failed

OPERATION = "register_provider"


class BasicRegistrationStep:
    def __init__(self, backend: MarketplaceBackendPort, password_min_length: int = 6) -> None:
        self._backend = backend
        self._password_min_length = password_min_length
        self._logger = logging.getLogger(__name__)

    def validate(self, info: BasicInfo, documents: ProviderDocuments) -> list[str]:
        problems = [f"{name} is required" for name in info.missing_fields()]
        if info.password and info.password != info.confirm_password:
            problems.append("Passwords do not match")
        if info.password and len(info.password) < self._password_min_length:
            problems.append(f"Password must be at least {self._password_min_length} characters")
        problems.extend(f"{name} document is required" for name in documents.missing())
        return problems

    async def execute(self, info: BasicInfo, documents: ProviderDocuments) -> ProviderIdentity:
        problems = self.validate(info, documents)
        if problems:
            raise OnboardingValidationError(problems)

        outcome = await self._backend.register_provider(info, documents)

        if isinstance(outcome, Confirmed):
            return outcome.payload
        if isinstance(outcome, Failed):
            raise RemoteOperationError(OPERATION, outcome.reason, outcome.status_code)
        if isinstance(outcome, Ambiguous):
            # Without a readable provider id nothing later in the workflow can run.
            self._logger.error(
                "Provider registration response unreadable",
                extra={"operation": OPERATION, "reason": outcome.reason, "status": outcome.status_code},
            )
            raise RemoteOperationError(
                OPERATION,
                "Provider registration could not be confirmed. Please check your account before retrying.",
                outcome.status_code,
            )
        raise TypeError(f"Unexpected outcome: {outcome!r}")

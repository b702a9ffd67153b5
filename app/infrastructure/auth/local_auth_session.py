from __future__ import annotations

from datetime import datetime, timezone

from app.application.ports.auth_session import AuthSessionPort
from app.domain.entities.auth_session import AuthSession
from app.domain.entities.provider import ProviderIdentity


class LocalAuthSession(AuthSessionPort):
    """
    Issues a session for a provider who has just registered.

    The backend has no completion endpoint, so the token is minted locally
    from the provider id and the current time.
    """

    async def establish_session(self, identity: ProviderIdentity) -> AuthSession:
        now = datetime.now(timezone.utc)
        return AuthSession(
            access_token=f"provider_{identity.id}_{int(now.timestamp() * 1000)}",
            identity=identity,
            established_at=now,
        )

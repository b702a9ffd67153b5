from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from app.domain.entities.provider import ProviderIdentity


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    identity: ProviderIdentity
    established_at: datetime
    user_type: str = "provider"
    fallback: bool = False

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ServiceCategory:
    id: int
    name: str
    description: str = ""


@dataclass(frozen=True)
class CategoryRegistration:
    provider_id: int
    confirmed_ids: frozenset[int]
    # Ids the backend reported as registered before this call (a no-op, not an error).
    already_registered_ids: frozenset[int] = frozenset()

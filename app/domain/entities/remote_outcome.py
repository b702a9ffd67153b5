from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Confirmed(Generic[T]):
    payload: T


@dataclass(frozen=True)
class Failed:
    reason: str
    status_code: int | None = None


@dataclass(frozen=True)
class Ambiguous(Generic[T]):
    """The transport reported success but the response could not be interpreted."""

    reason: str
    status_code: int | None = None
    best_effort_payload: T | None = None


RemoteOutcome = Union[Confirmed[T], Failed, Ambiguous[T]]

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

import httpx

from app.domain.entities.remote_outcome import Ambiguous, Confirmed, Failed, RemoteOutcome

T = TypeVar("T")


class RemoteOperation:
    """
    One named backend call that always resolves to a RemoteOutcome.

    - no response (connect error, timeout, ...)      -> Failed
    - non-2xx status                                  -> Failed, with the backend's message
    - 2xx but body unreadable, not JSON, or rejected  -> Ambiguous
    - 2xx with a body ``parse`` accepts               -> Confirmed
    """

    def __init__(self, client: httpx.AsyncClient, name: str, method: str, path: str) -> None:
        self._client = client
        self._name = name
        self._method = method
        self._path = path
        self._logger = logging.getLogger(__name__)

    async def execute(self, parse: Callable[[Any], T], **request_kwargs: Any) -> RemoteOutcome[T]:
        request = self._client.build_request(self._method, self._path, **request_kwargs)
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            return self._failed(f"{self._name} failed: {e.__class__.__name__}: {e}", None)

        try:
            try:
                await response.aread()
            except httpx.HTTPError as e:
                if response.is_success:
                    return self._ambiguous(f"Response body could not be read: {e}", response.status_code)
                return self._failed(f"HTTP error! status: {response.status_code}", response.status_code)

            if not response.is_success:
                return self._failed(_error_message(response), response.status_code)

            try:
                data = response.json()
            except ValueError as e:
                return self._ambiguous(f"Response body is not valid JSON: {e}", response.status_code)

            try:
                payload = parse(data)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                return self._ambiguous(f"Response body has an unexpected shape: {e!r}", response.status_code)
        finally:
            await response.aclose()

        self._logger.info(
            "Remote operation confirmed",
            extra={"operation": self._name, "status": response.status_code},
        )
        return Confirmed(payload)

    def _failed(self, reason: str, status_code: int | None) -> Failed:
        self._logger.warning(
            "Remote operation failed",
            extra={"operation": self._name, "status": status_code, "reason": reason},
        )
        return Failed(reason=reason, status_code=status_code)

    def _ambiguous(self, reason: str, status_code: int) -> Ambiguous[Any]:
        self._logger.error(
            "Remote operation outcome ambiguous",
            extra={"operation": self._name, "status": status_code, "reason": reason},
        )
        return Ambiguous(reason=reason, status_code=status_code)


def _error_message(response: httpx.Response) -> str:
    fallback = f"HTTP error! status: {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return fallback
    if not isinstance(body, dict):
        return fallback
    for key in ("error", "message", "detail"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return fallback

"""
Tests for RemoteOperation outcome classification over httpx.MockTransport.
"""

from __future__ import annotations

import asyncio

import httpx

from app.domain.entities.remote_outcome import Ambiguous, Confirmed, Failed
from app.infrastructure.marketplace.remote_operation import RemoteOperation


class BrokenStream(httpx.AsyncByteStream):
    """Body that dies part way, like a Content-Length mismatch."""

    async def __aiter__(self):
        yield b'{"service": {"id": 4'
        raise httpx.RemoteProtocolError("peer closed connection without sending complete message body")


def _run(handler, parse=lambda data: data, **request_kwargs):
    async def go():
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url="http://backend.test"
        ) as client:
            operation = RemoteOperation(client, "create_service", "POST", "/api/auth/provider/register-service")
            return await operation.execute(parse, **request_kwargs)

    return asyncio.run(go())


def test_success_with_valid_body_is_confirmed():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["method"] = request.method
        return httpx.Response(201, json={"service": {"id": 42}})

    outcome = _run(handler, parse=lambda data: data["service"]["id"], json={"service_title": "Deep clean"})

    assert outcome == Confirmed(42)
    assert seen == {"path": "/api/auth/provider/register-service", "method": "POST"}


def test_error_status_uses_backend_error_text():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"success": False, "error": "Email already registered"})

    outcome = _run(handler)

    assert isinstance(outcome, Failed)
    assert outcome.reason == "Email already registered"
    assert outcome.status_code == 409


def test_error_status_falls_back_to_message_then_generic_text():
    def with_message(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"message": "Category not found"})

    def plain_text(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="Internal Server Error")

    assert _run(with_message).reason == "Category not found"
    assert _run(plain_text).reason == "HTTP error! status: 500"


def test_transport_error_is_failed_without_status():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    outcome = _run(handler)

    assert isinstance(outcome, Failed)
    assert outcome.status_code is None
    assert "ConnectError" in outcome.reason


def test_truncated_body_on_success_is_ambiguous():
    """A 201 whose body cannot be read completely must not count as failed."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, stream=BrokenStream())

    outcome = _run(handler)

    assert isinstance(outcome, Ambiguous)
    assert outcome.status_code == 201
    assert outcome.best_effort_payload is None
    assert "could not be read" in outcome.reason


def test_truncated_body_on_error_status_is_failed():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, stream=BrokenStream())

    outcome = _run(handler)

    assert isinstance(outcome, Failed)
    assert outcome.reason == "HTTP error! status: 502"


def test_non_json_success_body_is_ambiguous():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>ok</html>")

    outcome = _run(handler)

    assert isinstance(outcome, Ambiguous)
    assert "not valid JSON" in outcome.reason


def test_unexpected_shape_is_ambiguous():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json={"success": True})

    outcome = _run(handler, parse=lambda data: data["service"]["id"])

    assert isinstance(outcome, Ambiguous)
    assert "unexpected shape" in outcome.reason


def test_list_body_where_object_expected_is_ambiguous():
    """A parser calling dict methods on a JSON array must not crash the call."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json=[{"id": 42}])

    outcome = _run(handler, parse=lambda data: data.get("service"))

    assert isinstance(outcome, Ambiguous)
    assert outcome.status_code == 201
    assert "AttributeError" in outcome.reason

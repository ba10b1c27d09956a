"""
Registry client tests without hitting the network.

Each test hands the client an httpx.MockTransport whose handler plays the
registry sheet web app.
"""

import asyncio
import json

import httpx
import pytest

from ptb_registry.clients import RegistryStoreClient, RegistryWriteError

URL = "https://sheet.example.test/exec"


def _client(handler):
    return RegistryStoreClient(URL, timeout=1.0, transport=httpx.MockTransport(handler))


def test_fetch_raw_success():
    def handler(request):
        assert request.method == "GET"
        return httpx.Response(200, json={"status": "success", "data": [{"id": "a"}]})

    result = asyncio.run(_client(handler).fetch_raw())
    assert result.ok
    assert result.rows == [{"id": "a"}]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"status": "error", "message": "sheet locked"}),
        httpx.Response(200, json={"status": "success"}),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, text="<html>login</html>"),
        httpx.Response(500, text="boom"),
    ],
)
def test_fetch_raw_failures_are_empty(response):
    result = asyncio.run(_client(lambda request: response).fetch_raw())
    assert not result.ok
    assert result.rows == []
    assert result.error


def test_fetch_raw_transport_error_is_empty():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    result = asyncio.run(_client(handler).fetch_raw())
    assert not result.ok
    assert result.rows == []


def test_save_posts_action_and_patient():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"status": "success"})

    asyncio.run(_client(handler).save({"id": "a", "lastName": "Reyes"}))
    assert seen == [{"action": "save", "patient": {"id": "a", "lastName": "Reyes"}}]


def test_patch_posts_id_and_updates():
    seen = []

    def handler(request):
        assert request.method == "POST"
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"status": "success"})

    asyncio.run(_client(handler).patch("a", {"finalDisposition": "Expired"}))
    assert seen == [{"action": "patch", "id": "a", "updates": {"finalDisposition": "Expired"}}]


def test_write_http_error_raises():
    client = _client(lambda request: httpx.Response(503, text="busy"))
    with pytest.raises(RegistryWriteError) as excinfo:
        asyncio.run(client.patch("a", {"finalDisposition": "Expired"}))
    assert excinfo.value.status == 503
    assert excinfo.value.action == "patch"


def test_write_transport_error_raises():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(RegistryWriteError):
        asyncio.run(_client(handler).save({"id": "a"}))

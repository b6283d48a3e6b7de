from __future__ import annotations

import httpx
import pytest

from connectflow.errors import TransportError, UpstreamError


@pytest.mark.asyncio
async def test_client_reuses_one_session(backend, make_client):
    backend.on("GET", "/professionals/suggestions", lambda request: httpx.Response(200, json=[]))
    client = make_client()

    await client.fetch_directory()
    session = client._session.peek()
    await client.fetch_directory()

    assert session is not None
    assert client._session.peek() is session
    await client.aclose()
    assert client._session.peek() is None


@pytest.mark.asyncio
async def test_client_sends_default_headers(backend, make_client):
    backend.on("GET", "/professionals/suggestions", lambda request: httpx.Response(200, json=[]))
    client = make_client(token="tok")

    await client.fetch_directory()

    headers = backend.requests[0].headers
    assert headers["Authorization"] == "Bearer tok"
    assert headers["Accept"] == "application/json"


@pytest.mark.asyncio
async def test_client_omits_authorization_without_token(backend, make_client):
    backend.on("GET", "/professionals/suggestions", lambda request: httpx.Response(200, json=[]))
    client = make_client(token=None)

    await client.fetch_directory()

    assert not client.authenticated
    assert "Authorization" not in backend.requests[0].headers


@pytest.mark.asyncio
async def test_error_status_carries_code_and_message(backend, make_client):
    backend.on(
        "POST",
        "/connections/recommendations",
        lambda request: httpx.Response(422, json={"detail": "prompt is required"}),
    )
    client = make_client()

    with pytest.raises(UpstreamError) as exc:
        await client.post_recommendations({"prompt": ""})

    assert exc.value.status_code == 422
    assert exc.value.message == "prompt is required"
    assert exc.value.body == {"detail": "prompt is required"}


@pytest.mark.asyncio
async def test_non_json_error_status_has_no_body(backend, make_client):
    backend.on("GET", "/approval-status", lambda request: httpx.Response(503, text="Service Unavailable"))
    client = make_client()

    with pytest.raises(UpstreamError) as exc:
        await client.fetch_approval_status("guardian@example.com")

    assert exc.value.status_code == 503
    assert exc.value.body is None
    assert exc.value.message == "Request failed with status 503"


@pytest.mark.asyncio
async def test_non_object_recommendation_body_is_rejected(backend, make_client):
    backend.on("POST", "/connections/recommendations", lambda request: httpx.Response(200, json=[1, 2]))
    client = make_client()

    with pytest.raises(UpstreamError):
        await client.post_recommendations({"prompt": "x"})


@pytest.mark.asyncio
async def test_timeout_becomes_transport_error(backend, make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("too slow", request=request)

    backend.on("GET", "/approval-status", handler)
    client = make_client(timeout_seconds=0.5)

    with pytest.raises(TransportError):
        await client.fetch_approval_status("guardian@example.com")

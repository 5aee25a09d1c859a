from __future__ import annotations

import asyncio

import aiohttp
import pytest

from conftest import FakeResponse

from deno_deploy.errors import DenoDeployApiError, DenoDeployError, ValidationError
from deno_deploy.http_client import DenoDeployClient
from deno_deploy.models import Credentials


@pytest.mark.asyncio
async def test_request_builds_authenticated_url_and_headers(session, client) -> None:
    session.queue(FakeResponse({"id": "p1"}))

    result = await client.request("GET", "/projects/p1")

    assert result == {"id": "p1"}
    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://api.deno.com/v1/projects/p1"
    assert call["headers"]["Authorization"] == "Bearer ddp_test_token"
    assert call["headers"]["Content-Type"] == "application/json"
    assert "json" not in call
    assert "params" not in call


@pytest.mark.asyncio
async def test_request_sends_body_and_cleans_query(session, client) -> None:
    session.queue(FakeResponse({"ok": True}))

    await client.request(
        "POST", "/projects", {"name": "demo"},
        {"limit": 10, "cursor": None, "returnAll": True, "level": "info"},
    )

    call = session.calls[0]
    assert call["json"] == {"name": "demo"}
    assert call["params"] == {"limit": 10, "returnAll": "true", "level": "info"}


@pytest.mark.asyncio
async def test_empty_body_and_empty_query_are_not_sent(session, client) -> None:
    session.queue(FakeResponse({}))

    await client.request("POST", "/domains/d1/verify", {}, {})

    assert "json" not in session.calls[0]
    assert "params" not in session.calls[0]


@pytest.mark.asyncio
async def test_custom_base_url_strips_trailing_slash(session, credentials) -> None:
    client = DenoDeployClient(session, credentials, base_url="http://localhost:8080/v1/")
    session.queue(FakeResponse([]))

    await client.request("GET", "/regions")

    assert session.calls[0]["url"] == "http://localhost:8080/v1/regions"


@pytest.mark.asyncio
async def test_empty_response_body_returns_empty_dict(session, client) -> None:
    session.queue(FakeResponse(status=204))

    assert await client.request("DELETE", "/projects/p1") == {}


@pytest.mark.asyncio
async def test_path_must_start_with_slash(session, client) -> None:
    with pytest.raises(ValidationError):
        await client.request("GET", "projects/p1")
    assert session.calls == []


@pytest.mark.asyncio
async def test_api_error_carries_message_code_and_status(session, client) -> None:
    session.queue(FakeResponse(
        {"code": "projectNotFound", "message": "The requested project was not found."},
        status=404,
    ))

    with pytest.raises(DenoDeployApiError) as info:
        await client.request("GET", "/projects/missing")

    err = info.value
    assert err.message == "The requested project was not found."
    assert err.code == "projectNotFound"
    assert err.status == 404
    assert err.to_dict() == {
        "message": "The requested project was not found.",
        "code": "projectNotFound",
        "status": 404,
    }


@pytest.mark.asyncio
async def test_api_error_falls_back_to_nested_message_then_code(session, client) -> None:
    session.queue(
        FakeResponse({"error": {"message": "nested boom"}}, status=400),
        FakeResponse({"code": "badThing"}, status=400),
        FakeResponse({}, status=500, reason="Internal Server Error"),
        FakeResponse(status=502),
    )

    messages = []
    for _ in range(4):
        with pytest.raises(DenoDeployApiError) as info:
            await client.request("GET", "/x")
        messages.append(info.value.message)

    assert messages == [
        "nested boom",
        "API Error: badThing",
        "Internal Server Error",
        "An unknown error occurred",
    ]


@pytest.mark.asyncio
async def test_plain_text_error_body_becomes_message(session, client) -> None:
    session.queue(FakeResponse(status=503, text="upstream unavailable"))

    with pytest.raises(DenoDeployApiError) as info:
        await client.request("GET", "/x")

    assert info.value.message == "upstream unavailable"


@pytest.mark.asyncio
async def test_invalid_utf8_error_body_still_raises_api_error(session, client) -> None:
    session.queue(FakeResponse(status=500, body=b'{"message": "\xff\xfe bad"}'))

    with pytest.raises(DenoDeployApiError) as info:
        await client.request("GET", "/x")

    assert info.value.status == 500
    assert info.value.message == "\ufffd\ufffd bad"


@pytest.mark.asyncio
async def test_rate_limit_error_exposes_retry_after(session, client) -> None:
    session.queue(FakeResponse({"message": "slow down"}, status=429, headers={"Retry-After": "3"}))

    with pytest.raises(DenoDeployApiError) as info:
        await client.request("GET", "/x")

    assert info.value.status == 429
    assert info.value.retry_after_ms() == 3000


@pytest.mark.asyncio
async def test_transport_failures_become_generic_errors(session, client) -> None:
    session.queue(aiohttp.ClientConnectionError("connection reset"), asyncio.TimeoutError())

    with pytest.raises(DenoDeployError) as first:
        await client.request("GET", "/x")
    with pytest.raises(DenoDeployError) as second:
        await client.request("GET", "/x")

    assert not isinstance(first.value, DenoDeployApiError)
    assert first.value.message == "connection reset"
    assert "timed out" in second.value.message


@pytest.mark.asyncio
async def test_verify_credentials_fetches_organization(session, credentials) -> None:
    client = DenoDeployClient(session, credentials)
    session.queue(FakeResponse({"id": "org-1", "name": "Acme"}))

    org = await client.verify_credentials()

    assert org["name"] == "Acme"
    assert session.calls[0]["url"].endswith("/organizations/org-1")


def test_credentials_from_mapping_validates_and_hides_token() -> None:
    creds = Credentials.from_mapping({"accessToken": " ddp_secret_123 ", "organizationId": "org"})
    assert creds.access_token == "ddp_secret_123"
    assert "ddp_secret_123" not in repr(creds)

    with pytest.raises(ValidationError):
        Credentials.from_mapping({"accessToken": "", "organizationId": "org"})
    with pytest.raises(ValidationError):
        Credentials.from_mapping({"accessToken": "tok"})

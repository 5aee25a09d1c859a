from __future__ import annotations

import json
from typing import Any

import pytest

from deno_deploy.http_client import DenoDeployClient
from deno_deploy.models import Credentials


class FakeResponse:
    """Stands in for aiohttp.ClientResponse inside `async with session.request(...)`."""

    def __init__(
        self,
        payload: Any = None,
        status: int = 200,
        headers: dict[str, str] | None = None,
        reason: str | None = None,
        text: str | None = None,
        body: bytes | None = None,
    ) -> None:
        self.status = status
        self.headers = headers or {}
        self.reason = reason
        if body is not None:
            self._body = body
        elif text is not None:
            self._body = text.encode("utf-8")
        elif payload is None:
            self._body = b""
        else:
            self._body = json.dumps(payload).encode("utf-8")

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self) -> FakeResponse:
        return self

    async def __aexit__(self, *exc: object) -> bool:
        return False


class FakeSession:
    """Records every request and replays queued responses (or raises queued exceptions)."""

    def __init__(self, *responses: FakeResponse | BaseException) -> None:
        self.responses: list[FakeResponse | BaseException] = list(responses)
        self.calls: list[dict[str, Any]] = []

    def queue(self, *responses: FakeResponse | BaseException) -> None:
        self.responses.extend(responses)

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"unexpected request {method} {url}")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(access_token="ddp_test_token", organization_id="org-1")


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(session: FakeSession, credentials: Credentials) -> DenoDeployClient:
    return DenoDeployClient(session, credentials)  # type: ignore[arg-type]


@pytest.fixture
def no_sleep() -> SleepRecorder:
    return SleepRecorder()

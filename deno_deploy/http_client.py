# Authenticated JSON client for the Deno Deploy REST API.

# One request in, one parsed JSON document out. Every failure leaves this
# module as a DenoDeployError so callers only ever catch one family:
#   non-2xx                  → DenoDeployApiError(message, code, status, headers)
#   connection / timeout     → DenoDeployError(message)
#
# No retry here: wrap calls in retry.with_retry where rate limiting matters.

import asyncio
import json
import logging
from typing import Any, Mapping

import aiohttp

from deno_deploy.config import API_BASE_URL, REQUEST_TIMEOUT_SECONDS
from deno_deploy.errors import DenoDeployApiError, DenoDeployError, ValidationError
from deno_deploy.models import Credentials

log = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred"


def _error_message(payload: Any, reason: str | None = None) -> str:
    """Pick the most useful message out of an API error body."""
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
        inner = payload.get("error")
        if isinstance(inner, dict):
            message = inner.get("message")
            if isinstance(message, str) and message:
                return message
        code = payload.get("code")
        if isinstance(code, str) and code:
            return f"API Error: {code}"
    if reason:
        return reason
    return UNKNOWN_ERROR_MESSAGE


def _error_code(payload: Any) -> str | None:
    if isinstance(payload, dict):
        code = payload.get("code")
        if isinstance(code, str):
            return code
        inner = payload.get("error")
        if isinstance(inner, dict) and isinstance(inner.get("code"), str):
            return inner["code"]
    return None


def _clean_query(query: Mapping[str, Any] | None) -> dict[str, str | int | float]:
    # aiohttp rejects bool and None query values
    cleaned: dict[str, str | int | float] = {}
    for key, value in (query or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            cleaned[key] = "true" if value else "false"
        elif isinstance(value, (int, float)):
            cleaned[key] = value
        else:
            cleaned[key] = str(value)
    return cleaned


class DenoDeployClient:
    """
    Wraps a caller-owned aiohttp.ClientSession with Deno Deploy auth.

    The session is not closed here; whoever created it owns its lifetime.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        credentials: Credentials,
        base_url: str = API_BASE_URL,
    ) -> None:
        self._session = session
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")

    @property
    def organization_id(self) -> str:
        return self.credentials.organization_id

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.credentials.access_token}",
            "Content-Type": "application/json",
        }

    async def request(
        self,
        method: str,
        path: str,
        body: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
    ) -> Any:
        """
        Issue one request and return the decoded JSON body.

        Returns {} for an empty body (DELETE endpoints answer 204).

        Raises:
            ValidationError      path does not start with '/'
            DenoDeployApiError   non-2xx response
            DenoDeployError      connection failure or timeout
        """
        if not path.startswith("/"):
            raise ValidationError(f"Request path must start with '/': {path!r}")

        url    = f"{self.base_url}{path}"
        kwargs: dict[str, Any] = {
            "headers": self._headers(),
            "timeout": aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS),
        }
        if body:
            kwargs["json"] = dict(body)
        params = _clean_query(query)
        if params:
            kwargs["params"] = params

        log.debug("%s %s params=%s", method, url, params)

        try:
            async with self._session.request(method, url, **kwargs) as resp:
                payload = await self._read_json(resp)

                if resp.status >= 400:
                    message = _error_message(payload, resp.reason)
                    log.warning("HTTP error %s %s: %s %s", method, url, resp.status, message)
                    raise DenoDeployApiError(
                        message,
                        code=_error_code(payload),
                        status=resp.status,
                        headers=resp.headers,
                    )

                return {} if payload is None else payload

        except aiohttp.ClientError as exc:
            log.warning("Request failed %s %s: %s", method, url, exc)
            raise DenoDeployError(str(exc) or UNKNOWN_ERROR_MESSAGE) from exc
        except asyncio.TimeoutError as exc:
            log.warning("Timeout %s %s", method, url)
            raise DenoDeployError(f"Request timed out after {REQUEST_TIMEOUT_SECONDS}s") from exc

    @staticmethod
    async def _read_json(resp: aiohttp.ClientResponse) -> Any:
        # undecodable bytes become U+FFFD rather than escaping as UnicodeDecodeError
        text = (await resp.read()).decode("utf-8", errors="replace")
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except ValueError:
            # plain-text error pages from proxies in front of the API
            return {"message": text.strip()} if resp.status >= 400 else text

    async def verify_credentials(self) -> dict[str, Any]:
        """Fetch the configured organization; raises if the token cannot see it."""
        return await self.request("GET", f"/organizations/{self.organization_id}")

# exhaustive fetch strategies over the Deno Deploy list endpoints.

# The API is inconsistent about list envelopes: some endpoints return a bare
# JSON array, others wrap it under one of several keys (see config.DATA_KEYS,
# checked in that order). An object carrying none of those keys is treated
# as a single result, never as an error.
#
# Both strategies take `request`, any coroutine function with the signature
# of DenoDeployClient.request, so a retrying wrapper can be slotted in.
# Pages are fetched one at a time to keep page and cursor order.

import logging
from typing import Any, Awaitable, Callable, Mapping

from deno_deploy.config import DATA_KEYS, MAX_CURSOR_PAGES, PAGE_SIZE

log = logging.getLogger(__name__)

RequestFn = Callable[..., Awaitable[Any]]


def find_data_key(payload: Any) -> str | None:
    """First key from DATA_KEYS whose value is a list, or None."""
    if not isinstance(payload, dict):
        return None
    for key in DATA_KEYS:
        if isinstance(payload.get(key), list):
            return key
    return None


def extract_items(payload: Any) -> list[Any]:
    """Flatten any response shape into a list of results."""
    if payload is None:
        return []
    if isinstance(payload, list):
        return list(payload)
    key = find_data_key(payload)
    if key is not None:
        return list(payload[key])
    return [payload]


async def request_all_items(
    request: RequestFn,
    method: str,
    path: str,
    body: Mapping[str, Any] | None = None,
    query: Mapping[str, Any] | None = None,
) -> list[Any]:
    """
    Page-based exhaustive fetch: page=1,2,... with limit=PAGE_SIZE.

    Stops on the first short page, or when the response is an object with
    no recognised list (that object becomes the only result on that page).
    Items are returned in page order; duplicates are not removed.
    """
    results: list[Any] = []
    page     = 1
    has_more = True

    while has_more:
        qs = {**(query or {}), "page": page, "limit": PAGE_SIZE}
        response = await request(method, path, body, qs)

        if isinstance(response, list):
            results.extend(response)
            has_more = len(response) >= PAGE_SIZE
        elif isinstance(response, dict):
            key = find_data_key(response)
            if key is not None:
                items = response[key]
                results.extend(items)
                has_more = len(items) >= PAGE_SIZE
            else:
                results.append(response)
                has_more = False
        else:
            has_more = False

        log.debug("%s page %d → %d item(s) so far", path, page, len(results))
        page += 1

    return results


async def request_with_cursor(
    request: RequestFn,
    method: str,
    path: str,
    body: Mapping[str, Any] | None = None,
    query: Mapping[str, Any] | None = None,
    limit: int = PAGE_SIZE,
    max_items: int | None = None,
    max_pages: int = MAX_CURSOR_PAGES,
) -> list[Any]:
    """
    Cursor-based exhaustive fetch following `nextCursor`.

    A bare-array response is taken as the whole collection, and an object
    with no recognised list key as a single result; both end the fetch.
    Iteration also stops once `max_items` results are collected (the result
    is truncated to exactly that many) or after `max_pages` requests.
    """
    results: list[Any] = []
    cursor: str | None = None
    pages = 0

    while True:
        qs: dict[str, Any] = {**(query or {}), "limit": limit}
        if cursor:
            qs["cursor"] = cursor

        response = await request(method, path, body, qs)
        pages += 1

        if isinstance(response, list):
            results.extend(response)
            break

        key = find_data_key(response)
        if key is None:
            results.append(response)
            break
        results.extend(response[key])

        if max_items is not None and len(results) >= max_items:
            results = results[:max_items]
            break

        cursor = response.get("nextCursor")
        if not cursor:
            break

        if pages >= max_pages:
            log.warning(
                "Stopped following cursors for %s after %d page(s); API kept returning nextCursor",
                path, pages,
            )
            break

    if max_items is not None:
        results = results[:max_items]
    return results

"""Pocket v3 API helpers for snapshot, delta and action requests."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import httpx

from pocket_reader.errors import SyncTransportFailure
from pocket_reader.models import DeltaBatch, OutgoingMutation, Snapshot
from pocket_reader.parsing import build_snapshot, parse_delta_response, parse_item_list

logger = logging.getLogger(__name__)

POCKET_API_BASE = "https://getpocket.com/v3"
GET_ENDPOINT = f"{POCKET_API_BASE}/get"
SEND_ENDPOINT = f"{POCKET_API_BASE}/send"
PAGE_SIZE = 100
DEFAULT_TIMEOUT_SECONDS = 30
# Guards against a server that keeps returning full pages
MAX_PAGES = 500

_HEADERS = {
    "Content-Type": "application/json; charset=UTF-8",
    "X-Accept": "application/json",
}


async def post_json(
    *,
    client: httpx.AsyncClient | None,
    url: str,
    payload: Mapping[str, Any],
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> dict[str, Any]:
    """POST ``payload`` and return the decoded JSON object.

    Raises:
        SyncTransportFailure: On network errors, non-2xx statuses and
            bodies that are not JSON objects.
    """
    try:
        if client is not None:
            response = await client.post(url, json=dict(payload), headers=_HEADERS, timeout=timeout_seconds)
        else:
            async with httpx.AsyncClient() as tmp_client:
                response = await tmp_client.post(
                    url, json=dict(payload), headers=_HEADERS, timeout=timeout_seconds
                )
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        logger.warning(
            "Pocket request to %s failed with %s (%s)", url, status, exc.response.headers.get("X-Error", "")
        )
        raise SyncTransportFailure.from_status(status) from exc
    except httpx.HTTPError as exc:
        logger.warning("Pocket request to %s failed: %s", url, exc)
        raise SyncTransportFailure(f"Network error: {exc}") from exc

    try:
        data = response.json()
    except ValueError as exc:
        raise SyncTransportFailure("Pocket returned a response that is not JSON") from exc
    if not isinstance(data, dict):
        raise SyncTransportFailure("Pocket returned an unexpected response shape")
    return data


def _get_params(consumer_key: str, access_token: str, *, offset: int, since: int | None) -> dict[str, Any]:
    params: dict[str, Any] = {
        "consumer_key": consumer_key,
        "access_token": access_token,
        "detailType": "complete",
        "state": "all",
        "sort": "newest",
        "count": PAGE_SIZE,
        "offset": offset,
    }
    if since is not None:
        params["since"] = since
    return params


async def _fetch_pages(
    *,
    client: httpx.AsyncClient | None,
    consumer_key: str,
    access_token: str,
    since: int | None,
    timeout_seconds: int,
) -> list[dict[str, Any]]:
    pages: list[dict[str, Any]] = []
    offset = 0
    for _ in range(MAX_PAGES):
        payload = _get_params(consumer_key, access_token, offset=offset, since=since)
        page = await post_json(client=client, url=GET_ENDPOINT, payload=payload, timeout_seconds=timeout_seconds)
        pages.append(page)
        count = len(parse_item_list(page))
        logger.debug("Fetched Pocket page offset=%d items=%d", offset, count)
        if count < PAGE_SIZE:
            break
        offset += PAGE_SIZE
    return pages


async def fetch_snapshot(
    *,
    client: httpx.AsyncClient | None,
    consumer_key: str,
    access_token: str,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> Snapshot:
    """Fetch the complete remote list, page by page."""
    pages = await _fetch_pages(
        client=client,
        consumer_key=consumer_key,
        access_token=access_token,
        since=None,
        timeout_seconds=timeout_seconds,
    )
    return build_snapshot(pages)


async def fetch_delta(
    *,
    client: httpx.AsyncClient | None,
    consumer_key: str,
    access_token: str,
    cursor: int,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> DeltaBatch:
    """Fetch every item changed since ``cursor``. The batch may be empty."""
    pages = await _fetch_pages(
        client=client,
        consumer_key=consumer_key,
        access_token=access_token,
        since=cursor,
        timeout_seconds=timeout_seconds,
    )
    batch = DeltaBatch(since=cursor, end_cursor=cursor)
    for page in pages:
        part = parse_delta_response(page, cursor)
        batch.records.extend(part.records)
        if batch.end_cursor == cursor and part.end_cursor is not None:
            batch.end_cursor = part.end_cursor
    return batch


def mutation_to_action(mutation: OutgoingMutation) -> dict[str, str]:
    """Translate a queued local change into a ``/v3/send`` action object."""
    action = {
        "action": mutation.action,
        "item_id": mutation.item_id,
        "time": str(mutation.timestamp),
    }
    action.update(mutation.args)
    return action


async def send_actions(
    *,
    client: httpx.AsyncClient | None,
    consumer_key: str,
    access_token: str,
    mutations: Iterable[OutgoingMutation],
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> None:
    """Push queued mutations in one ``/v3/send`` call."""
    actions = [mutation_to_action(mutation) for mutation in mutations]
    if not actions:
        return
    payload = {"consumer_key": consumer_key, "access_token": access_token, "actions": actions}
    data = await post_json(client=client, url=SEND_ENDPOINT, payload=payload, timeout_seconds=timeout_seconds)
    errors = [err for err in data.get("action_errors") or [] if err]
    if data.get("status") != 1 or errors:
        logger.warning("Pocket rejected actions: %r", errors)
        raise SyncTransportFailure(f"Pocket rejected {len(errors) or len(actions)} queued change(s)")


__all__ = [
    "GET_ENDPOINT",
    "PAGE_SIZE",
    "SEND_ENDPOINT",
    "fetch_delta",
    "fetch_snapshot",
    "mutation_to_action",
    "post_json",
    "send_actions",
]

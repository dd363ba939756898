"""Service interfaces + default adapters for app-level dependency injection."""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

import httpx

from pocket_reader.config import FilePersistence, read_token_file
from pocket_reader.errors import SyncTransportFailure
from pocket_reader.models import Cursor, DeltaBatch, OutgoingMutation, Snapshot
from pocket_reader.services import pocket_api_service as _pocket_api

ACCESS_TOKEN_ENV = "POCKET_ACCESS_TOKEN"
CONSUMER_KEY_ENV = "POCKET_CONSUMER_KEY"


@runtime_checkable
class TokenProvider(Protocol):
    """Source of the opaque credential used for remote calls."""

    def get_token(self) -> str:
        """Return the access token or raise SyncTransportFailure."""
        ...


@runtime_checkable
class SyncTransport(Protocol):
    """Interface for fetching snapshots and deltas and pushing local changes."""

    async def fetch_snapshot(self, credential: str) -> Snapshot:
        """Fetch the full remote list."""
        ...

    async def fetch_delta(self, credential: str, cursor: Cursor) -> DeltaBatch:
        """Fetch changes since ``cursor``; may be empty."""
        ...

    async def send_mutations(self, credential: str, mutations: Sequence[OutgoingMutation]) -> None:
        """Push queued local changes."""
        ...


@runtime_checkable
class Persistence(Protocol):
    """Opaque byte storage for the local replica."""

    def load_bytes(self) -> bytes | None:
        """Return the stored blob, or None when nothing was saved yet."""
        ...

    def save_bytes(self, data: bytes) -> None:
        """Replace the stored blob."""
        ...


class DefaultTokenProvider:
    """Reads the token from ``$POCKET_ACCESS_TOKEN`` or the ``user.key`` file."""

    def __init__(self, token_path: Path | None = None) -> None:
        self._token_path = token_path

    def get_token(self) -> str:
        token = os.environ.get(ACCESS_TOKEN_ENV, "").strip() or read_token_file(self._token_path)
        if not token:
            raise SyncTransportFailure(
                f"No Pocket access token found (set {ACCESS_TOKEN_ENV} or create user.key)",
                status=401,
            )
        return token


class DefaultSyncTransport:
    """Pocket v3 transport backed by a shared httpx client."""

    def __init__(self, consumer_key: str, client: httpx.AsyncClient | None = None) -> None:
        self._consumer_key = consumer_key or os.environ.get(CONSUMER_KEY_ENV, "")
        self.client = client

    def _require_consumer_key(self) -> str:
        if not self._consumer_key:
            raise SyncTransportFailure(
                f"No Pocket consumer key configured (set {CONSUMER_KEY_ENV} or consumer_key in config)",
                status=401,
            )
        return self._consumer_key

    async def fetch_snapshot(self, credential: str) -> Snapshot:
        return await _pocket_api.fetch_snapshot(
            client=self.client,
            consumer_key=self._require_consumer_key(),
            access_token=credential,
        )

    async def fetch_delta(self, credential: str, cursor: Cursor) -> DeltaBatch:
        return await _pocket_api.fetch_delta(
            client=self.client,
            consumer_key=self._require_consumer_key(),
            access_token=credential,
            cursor=cursor,
        )

    async def send_mutations(self, credential: str, mutations: Sequence[OutgoingMutation]) -> None:
        await _pocket_api.send_actions(
            client=self.client,
            consumer_key=self._require_consumer_key(),
            access_token=credential,
            mutations=mutations,
        )


@dataclass(slots=True)
class AppServices:
    """Aggregated collaborators consumed by the app layer."""

    tokens: TokenProvider
    transport: SyncTransport
    persistence: Persistence


def build_default_app_services(consumer_key: str = "") -> AppServices:
    """Build default app services backed by Pocket and local files."""
    return AppServices(
        tokens=DefaultTokenProvider(),
        transport=DefaultSyncTransport(consumer_key),
        persistence=FilePersistence(),
    )


__all__ = [
    "ACCESS_TOKEN_ENV",
    "CONSUMER_KEY_ENV",
    "AppServices",
    "DefaultSyncTransport",
    "DefaultTokenProvider",
    "Persistence",
    "SyncTransport",
    "TokenProvider",
    "build_default_app_services",
]

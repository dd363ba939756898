"""Configuration and store persistence: load, save, serialize."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from platformdirs import user_config_dir, user_data_dir

from pocket_reader.models import (
    CONFIG_APP_NAME,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SYNC_INTERVAL_MINUTES,
    MERGE_FIELDS,
    ContentType,
    Entry,
    EntryStats,
    OutgoingMutation,
    SessionState,
    UserConfig,
)

if TYPE_CHECKING:
    from pocket_reader.services.interfaces import Persistence

logger = logging.getLogger(__name__)

# ============================================================================
# Paths
# ============================================================================
#
# Validation contract: _dict_to_config() returns a valid UserConfig for any
# input. Wrong-typed scalars fall back to defaults via _safe_get(), and
# UserConfig.__post_init__ clamps tag_match_mode, page_size and the sync
# interval. deserialize_store() skips individual malformed entries instead of
# rejecting the whole file.
#
CONFIG_FILENAME = "config.json"
STORE_FILENAME = "store.json"
TOKEN_FILENAME = "user.key"
STORE_FORMAT = "pocket-reader-store"
STORE_FORMAT_VERSION = 1


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Uses platformdirs for a cross-platform config directory:
    - Linux: ~/.config/pocket-reader/config.json
    - macOS: ~/Library/Application Support/pocket-reader/config.json
    - Windows: %APPDATA%/pocket-reader/config.json
    """
    return Path(user_config_dir(CONFIG_APP_NAME)) / CONFIG_FILENAME


def get_token_path() -> Path:
    """Path of the file holding the Pocket access token."""
    return Path(user_config_dir(CONFIG_APP_NAME)) / TOKEN_FILENAME


def get_store_path() -> Path:
    """Path of the persisted local replica."""
    return Path(user_data_dir(CONFIG_APP_NAME)) / STORE_FILENAME


def get_debug_log_path() -> Path:
    return Path(user_config_dir(CONFIG_APP_NAME)) / "debug.log"


def atomic_write_bytes(path: Path, data: bytes, *, prefix: str = ".tmp-") -> None:
    """Write ``data`` to ``path`` via a temp file and ``os.replace``.

    Raises:
        OSError: If the directory cannot be created or the write fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix=prefix)
    closed = False
    try:
        os.write(fd, data)
        os.close(fd)
        closed = True
        os.replace(tmp_path, path)
    except BaseException:
        if not closed:
            os.close(fd)
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


# ============================================================================
# User configuration
# ============================================================================


def _config_to_dict(config: UserConfig) -> dict[str, Any]:
    """Serialize a UserConfig into a JSON-compatible dict."""
    return {
        "version": config.version,
        "consumer_key": config.consumer_key,
        "tag_match_mode": config.tag_match_mode,
        "show_archived": config.show_archived,
        "sync_interval_minutes": config.sync_interval_minutes,
        "page_size": config.page_size,
        "ascii_icons": config.ascii_icons,
        "theme_name": config.theme_name,
        "session": {
            "selected_id": config.session.selected_id,
            "current_filter": config.session.current_filter,
            "type_filter": config.session.type_filter,
            "show_archived": config.session.show_archived,
        },
    }


def _safe_get(data: dict, key: str, default: Any, expected_type: type | tuple[type, ...]) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if not isinstance(value, expected_type):
        return default
    return value


def _parse_session_state(data: dict[str, Any]) -> SessionState:
    session = data.get("session", {})
    if not isinstance(session, dict):
        return SessionState()
    selected_id = session.get("selected_id")
    type_filter = session.get("type_filter")
    return SessionState(
        selected_id=str(selected_id) if isinstance(selected_id, (str, int)) else None,
        current_filter=_safe_get(session, "current_filter", "", str),
        type_filter=type_filter if isinstance(type_filter, str) else None,
        show_archived=_safe_get(session, "show_archived", False, bool),
    )


def _dict_to_config(data: dict[str, Any]) -> UserConfig:
    """Deserialize a dict into a UserConfig, tolerating bad values."""
    if not isinstance(data, dict):
        raise TypeError(f"Config root must be an object, got {type(data).__name__}")
    return UserConfig(
        consumer_key=_safe_get(data, "consumer_key", "", str),
        tag_match_mode=_safe_get(data, "tag_match_mode", "and", str),
        show_archived=_safe_get(data, "show_archived", False, bool),
        sync_interval_minutes=_safe_get(data, "sync_interval_minutes", DEFAULT_SYNC_INTERVAL_MINUTES, int),
        page_size=_safe_get(data, "page_size", DEFAULT_PAGE_SIZE, int),
        ascii_icons=_safe_get(data, "ascii_icons", False, bool),
        theme_name=_safe_get(data, "theme_name", "monokai", str),
        session=_parse_session_state(data),
        version=_safe_get(data, "version", 1, int),
    )


def load_config(path: Path | None = None) -> UserConfig:
    """Load configuration from disk.

    Returns default config if the file doesn't exist or is corrupted.
    """
    config_path = path or get_config_path()
    if not config_path.exists():
        return UserConfig()
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        return _dict_to_config(data)
    except json.JSONDecodeError as e:
        logger.warning("Config file has invalid JSON, using defaults: %s", e)
        return UserConfig()
    except (KeyError, TypeError) as e:
        logger.warning("Config file has invalid structure, using defaults: %s", e)
        return UserConfig()
    except OSError as e:
        logger.warning("Could not read config file, using defaults: %s", e)
        return UserConfig()


def save_config(config: UserConfig, path: Path | None = None) -> bool:
    """Save configuration to disk atomically. Returns True on success."""
    config_path = path or get_config_path()
    json_str = json.dumps(_config_to_dict(config), indent=2, ensure_ascii=False)
    try:
        atomic_write_bytes(config_path, json_str.encode("utf-8"), prefix=".config-")
        return True
    except OSError as e:
        logger.error("Failed to save config: %s", e)
        return False


# ============================================================================
# Store serialization
# ============================================================================


@dataclass(slots=True)
class PersistedStore:
    """Logical content of the persisted replica."""

    entries: list[Entry] = field(default_factory=list)
    cursor: int | None = None
    outgoing: list[OutgoingMutation] = field(default_factory=list)


def _entry_to_dict(entry: Entry) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": entry.id,
        "title": entry.title,
        "url": entry.url,
        "domain": entry.domain,
        "content_type": entry.content_type.value,
        "tags": list(entry.tags),
        "added_at": entry.added_at,
        "modified_at": entry.modified_at,
        "favorite": entry.favorite,
        "archived": entry.archived,
        "deleted": entry.deleted,
        "field_times": dict(entry.field_times),
    }
    if entry.stats is not None:
        data["stats"] = {
            "word_count": entry.stats.word_count,
            "duration_seconds": entry.stats.duration_seconds,
            "page_count": entry.stats.page_count,
        }
    return data


def _dict_to_entry(data: dict[str, Any]) -> Entry:
    entry_id = data.get("id")
    if not isinstance(entry_id, str) or not entry_id:
        raise ValueError("entry without id")
    stats_raw = data.get("stats")
    stats = None
    if isinstance(stats_raw, dict):
        stats = EntryStats(
            word_count=_safe_get(stats_raw, "word_count", 0, int),
            duration_seconds=_safe_get(stats_raw, "duration_seconds", 0, int),
            page_count=_safe_get(stats_raw, "page_count", 0, int),
        )
    times_raw = _safe_get(data, "field_times", {}, dict)
    field_times = {
        name: value for name, value in times_raw.items() if name in MERGE_FIELDS and isinstance(value, int)
    }
    tags = [tag for tag in _safe_get(data, "tags", [], list) if isinstance(tag, str)]
    return Entry(
        id=entry_id,
        title=_safe_get(data, "title", "", str),
        url=_safe_get(data, "url", "", str),
        domain=_safe_get(data, "domain", "", str),
        content_type=ContentType(_safe_get(data, "content_type", "article", str)),
        tags=tuple(dict.fromkeys(tags)),
        added_at=_safe_get(data, "added_at", 0, int),
        modified_at=_safe_get(data, "modified_at", 0, int),
        favorite=_safe_get(data, "favorite", False, bool),
        archived=_safe_get(data, "archived", False, bool),
        deleted=_safe_get(data, "deleted", False, bool),
        stats=stats,
        field_times=field_times,
    )


def _mutation_to_dict(mutation: OutgoingMutation) -> dict[str, Any]:
    return {
        "action": mutation.action,
        "item_id": mutation.item_id,
        "timestamp": mutation.timestamp,
        "args": dict(mutation.args),
    }


def _dict_to_mutation(data: dict[str, Any]) -> OutgoingMutation:
    action = data.get("action")
    item_id = data.get("item_id")
    if not isinstance(action, str) or not isinstance(item_id, str):
        raise ValueError("mutation without action or item_id")
    args = _safe_get(data, "args", {}, dict)
    return OutgoingMutation(
        action=action,
        item_id=item_id,
        timestamp=_safe_get(data, "timestamp", 0, int),
        args={str(k): str(v) for k, v in args.items()},
    )


def serialize_store(state: PersistedStore) -> bytes:
    """Encode entries, resume cursor and pending mutations as JSON bytes."""
    payload = {
        "format": STORE_FORMAT,
        "version": STORE_FORMAT_VERSION,
        "cursor": state.cursor,
        "entries": [_entry_to_dict(entry) for entry in state.entries],
        "outgoing": [_mutation_to_dict(mutation) for mutation in state.outgoing],
    }
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def deserialize_store(data: bytes) -> PersistedStore:
    """Decode bytes written by :func:`serialize_store`.

    Raises:
        ValueError: If the blob is not a store file at all.
    """
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValueError(f"Store file is not valid JSON: {e}") from e
    if not isinstance(payload, dict) or payload.get("format") != STORE_FORMAT:
        raise ValueError("Store file has an unknown format")
    version = payload.get("version")
    if not isinstance(version, int) or version > STORE_FORMAT_VERSION:
        raise ValueError(f"Unsupported store format version: {version!r}")

    state = PersistedStore(cursor=_safe_get(payload, "cursor", None, int))
    for raw in _safe_get(payload, "entries", [], list):
        try:
            state.entries.append(_dict_to_entry(raw))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("Skipping malformed stored entry: %s", e)
    for raw in _safe_get(payload, "outgoing", [], list):
        try:
            state.outgoing.append(_dict_to_mutation(raw))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("Skipping malformed queued mutation: %s", e)
    return state


def load_persisted_store(persistence: Persistence) -> PersistedStore:
    """Read the replica through ``persistence``; an unreadable blob starts empty."""
    data = persistence.load_bytes()
    if data is None:
        return PersistedStore()
    try:
        return deserialize_store(data)
    except ValueError as e:
        logger.warning("Ignoring unreadable store file, starting empty: %s", e)
        return PersistedStore()


def save_persisted_store(persistence: Persistence, state: PersistedStore) -> bool:
    """Write the replica. Returns True on success."""
    try:
        persistence.save_bytes(serialize_store(state))
    except OSError as e:
        logger.error("Failed to save store: %s", e)
        return False
    logger.debug("Saved %d entries, %d queued change(s)", len(state.entries), len(state.outgoing))
    return True


class FilePersistence:
    """Reads and writes the opaque store blob at a fixed path."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or get_store_path()

    def load_bytes(self) -> bytes | None:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Could not read store file %s: %s", self.path, e)
            return None

    def save_bytes(self, data: bytes) -> None:
        atomic_write_bytes(self.path, data, prefix=".store-")


def read_token_file(path: Path | None = None) -> str | None:
    """Return the first non-empty line of the token file, if any."""
    token_path = path or get_token_path()
    try:
        text = token_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.warning("Could not read token file %s: %s", token_path, e)
        return None
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return None


__all__ = [
    "CONFIG_FILENAME",
    "STORE_FILENAME",
    "TOKEN_FILENAME",
    "FilePersistence",
    "PersistedStore",
    "atomic_write_bytes",
    "deserialize_store",
    "get_config_path",
    "get_debug_log_path",
    "get_store_path",
    "get_token_path",
    "load_config",
    "load_persisted_store",
    "read_token_file",
    "save_config",
    "save_persisted_store",
    "serialize_store",
]

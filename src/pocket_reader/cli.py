"""CLI/bootstrap helpers for the Pocket Reader application."""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pocket_reader.action_messages import build_actionable_error
from pocket_reader.config import get_debug_log_path, load_config, load_persisted_store
from pocket_reader.models import DOMAIN_STATS_LIMIT, UserConfig
from pocket_reader.services.interfaces import AppServices, build_default_app_services
from pocket_reader.stats import compute_stats, render_domain_stats, render_stats_report
from pocket_reader.store import EntryStore

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure logging. When debug=True, logs to file at DEBUG level."""
    if not debug:
        # Default: suppress all logging (TUI captures stderr)
        logging.disable(logging.CRITICAL)
        return

    log_file = get_debug_log_path()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)


def _configure_color_mode(color_mode: str) -> None:
    """Configure environment hints for terminal color behavior."""
    if color_mode == "never":
        os.environ["NO_COLOR"] = "1"
        os.environ.pop("FORCE_COLOR", None)
        return
    if color_mode == "always":
        os.environ["FORCE_COLOR"] = "1"
        os.environ.pop("NO_COLOR", None)
        return
    # auto
    os.environ.pop("FORCE_COLOR", None)


def _validate_interactive_tty() -> bool:
    """Return True when stdin/stdout are interactive terminals."""
    return bool(sys.stdin.isatty() and sys.stdout.isatty())


def _load_store(services: AppServices) -> tuple[EntryStore, int | None]:
    """Build the entry store from the persisted replica, if any."""
    state = load_persisted_store(services.persistence)
    store = EntryStore()
    store.restore(state.entries, state.outgoing)
    logger.debug(
        "Loaded %d entries, cursor=%s, %d queued change(s)",
        len(state.entries),
        state.cursor,
        len(state.outgoing),
    )
    return store, state.cursor


def _print_tag_counts(store: EntryStore) -> int:
    counts = store.counts_by_tag()
    if not counts:
        print(
            build_actionable_error(
                "list tags",
                why="no tagged entries are stored locally",
                next_step="run pocket-reader once to sync, then try again",
            ),
            file=sys.stderr,
        )
        return 1
    width = max(len(tag) for tag, _ in counts)
    for tag, count in counts:
        print(f"{tag:<{width}}  {count}")
    return 0


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], UserConfig] = load_config,
    build_services_fn: Callable[[str], AppServices] = build_default_app_services,
    configure_logging_fn: Callable[[bool], None] = _configure_logging,
    configure_color_mode_fn: Callable[[str], None] = _configure_color_mode,
    validate_interactive_tty_fn: Callable[[], bool] = _validate_interactive_tty,
    app_factory: Callable[..., Any] | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    parser = argparse.ArgumentParser(description="Read and triage your Pocket list in a TUI")
    parser.add_argument(
        "--no-restore",
        action="store_true",
        help="Start with fresh session (ignore saved selection and filters)",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Discard the sync cursor and download the full list at startup",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Never contact Pocket; browse and edit the local copy only",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print reading statistics for the local copy and exit",
    )
    parser.add_argument(
        "--list-tags",
        action="store_true",
        help="Print tags with entry counts and exit",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/pocket-reader/debug.log)",
    )
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default="auto",
        help="Color output mode for terminal UI (default: auto)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable terminal colors (equivalent to --color never)",
    )
    parser.add_argument(
        "--ascii",
        action="store_true",
        help="Use ASCII-only status icons for compatibility with limited terminals",
    )
    args = parser.parse_args(argv)
    if args.stats and args.list_tags:
        print("Error: --stats cannot be combined with --list-tags", file=sys.stderr)
        return 1

    color_mode = "never" if args.no_color else args.color
    configure_color_mode_fn(color_mode)
    configure_logging_fn(args.debug)
    logger.debug("pocket-reader starting, cwd=%s", Path.cwd())

    config = load_config_fn()
    services = build_services_fn(config.consumer_key)
    store, cursor = _load_store(services)
    ascii_only = args.ascii or config.ascii_icons

    if args.stats:
        print(render_stats_report(compute_stats(store.all()), ascii_only=ascii_only))
        print()
        print("Top domains")
        print(render_domain_stats(store.counts_by_domain(DOMAIN_STATS_LIMIT), ascii_only=ascii_only))
        return 0

    if args.list_tags:
        return _print_tag_counts(store)

    if not validate_interactive_tty_fn():
        print(
            "Error: pocket-reader requires an interactive TTY for the full UI.",
            file=sys.stderr,
        )
        print("Next steps:", file=sys.stderr)
        print("  - Run pocket-reader directly in a terminal session", file=sys.stderr)
        print("  - Use --stats or --list-tags for non-interactive output", file=sys.stderr)
        print("  - Use --help for command documentation", file=sys.stderr)
        return 2

    if args.refresh:
        cursor = None

    if app_factory is None:
        from pocket_reader.app import PocketReader as _PocketReader

        app_factory = _PocketReader

    app = app_factory(
        store,
        config=config,
        cursor=cursor,
        restore_session=not args.no_restore,
        services=services,
        offline=args.offline,
        full_refresh_on_start=args.refresh,
        ascii_icons=args.ascii,
    )
    app.run()
    return 0


__all__ = [
    "_configure_color_mode",
    "_configure_logging",
    "_load_store",
    "_validate_interactive_tty",
    "main",
]

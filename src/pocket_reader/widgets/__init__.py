"""Widgets used by the Pocket Reader app."""

from pocket_reader.widgets.chrome import ContextFooter, FilterPillBar
from pocket_reader.widgets.listing import render_entry_option, set_ascii_icons

__all__ = [
    "ContextFooter",
    "FilterPillBar",
    "render_entry_option",
    "set_ascii_icons",
]

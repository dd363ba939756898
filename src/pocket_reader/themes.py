"""Theme system: color palettes, content-type colors and Textual theme builders."""

from __future__ import annotations

import hashlib

from textual.theme import Theme as TextualTheme

from pocket_reader.models import ContentType

DEFAULT_THEME = {
    "background": "#272822",
    "panel": "#1e1e1e",
    "panel_alt": "#3e3d32",
    "border": "#75715e",
    "text": "#f8f8f2",
    "muted": "#75715e",
    "accent": "#66d9ef",
    "accent_alt": "#e6db74",
    "green": "#a6e22e",
    "yellow": "#e6db74",
    "orange": "#fd971f",
    "pink": "#f92672",
    "purple": "#ae81ff",
    "highlight": "#49483e",
    "highlight_focus": "#5a5950",
    "scrollbar_background": "#3e3d32",
    "scrollbar": "#75715e",
    "scrollbar_active": "#66d9ef",
    "scrollbar_hover": "#a8a8a2",
}

CATPPUCCIN_MOCHA_THEME: dict[str, str] = {
    "background": "#1e1e2e",
    "panel": "#181825",
    "panel_alt": "#313244",
    "border": "#585b70",
    "text": "#cdd6f4",
    "muted": "#6c7086",
    "accent": "#89b4fa",
    "accent_alt": "#f9e2af",
    "green": "#a6e3a1",
    "yellow": "#f9e2af",
    "orange": "#fab387",
    "pink": "#f38ba8",
    "purple": "#cba6f7",
    "highlight": "#313244",
    "highlight_focus": "#45475a",
    "scrollbar_background": "#313244",
    "scrollbar": "#6c7086",
    "scrollbar_active": "#89b4fa",
    "scrollbar_hover": "#9399b2",
}

THEMES: dict[str, dict[str, str]] = {
    "monokai": DEFAULT_THEME,
    "catppuccin-mocha": CATPPUCCIN_MOCHA_THEME,
}
THEME_NAMES: list[str] = list(THEMES.keys())

# Palette keys used for each content type badge
CONTENT_TYPE_COLOR_KEYS: dict[ContentType, str] = {
    ContentType.ARTICLE: "accent",
    ContentType.VIDEO: "pink",
    ContentType.PDF: "orange",
}

# Rotating palette keys for tag chips
_TAG_COLOR_KEYS = ("green", "purple", "yellow", "accent", "orange")


def _build_textual_theme(name: str, colors: dict[str, str]) -> TextualTheme:
    """Convert an app color dict to a Textual Theme with custom CSS variables.

    Maps the palette to $th-* CSS variables used throughout the TCSS and sets
    primary/background/foreground for Textual's built-in widget styling.
    """
    variables = {
        "th-background": colors["background"],
        "th-panel": colors["panel"],
        "th-panel-alt": colors["panel_alt"],
        "th-highlight": colors["highlight"],
        "th-highlight-focus": colors["highlight_focus"],
        "th-accent": colors["accent"],
        "th-accent-alt": colors["accent_alt"],
        "th-muted": colors["muted"],
        "th-text": colors["text"],
        "th-green": colors["green"],
        "th-orange": colors["orange"],
        "th-pink": colors["pink"],
        "th-purple": colors["purple"],
        "th-scrollbar-bg": colors["scrollbar_background"],
        "th-scrollbar-thumb": colors["scrollbar"],
        "th-scrollbar-active": colors["scrollbar_active"],
        "th-scrollbar-hover": colors["scrollbar_hover"],
    }
    return TextualTheme(
        name=name,
        primary=colors["accent"],
        secondary=colors["accent_alt"],
        accent=colors["green"],
        foreground=colors["text"],
        background=colors["background"],
        surface=colors["panel"],
        panel=colors["panel_alt"],
        warning=colors["orange"],
        error=colors["pink"],
        success=colors["green"],
        dark=True,
        variables=variables,
    )


TEXTUAL_THEMES: dict[str, TextualTheme] = {
    name: _build_textual_theme(name, colors) for name, colors in THEMES.items()
}

# Active palette, swapped in place when the theme changes
THEME_COLORS = DEFAULT_THEME.copy()


def apply_theme(name: str) -> str:
    """Make ``name`` the active palette; unknown names fall back to monokai."""
    resolved = name if name in THEMES else THEME_NAMES[0]
    THEME_COLORS.clear()
    THEME_COLORS.update(THEMES[resolved])
    return resolved


def get_content_type_color(content_type: ContentType) -> str:
    return THEME_COLORS[CONTENT_TYPE_COLOR_KEYS[content_type]]


def get_tag_color(tag: str) -> str:
    """Return a stable color for a tag, derived from its name."""
    digest = hashlib.md5(tag.encode("utf-8"), usedforsecurity=False).digest()
    return THEME_COLORS[_TAG_COLOR_KEYS[digest[0] % len(_TAG_COLOR_KEYS)]]


__all__ = [
    "CATPPUCCIN_MOCHA_THEME",
    "CONTENT_TYPE_COLOR_KEYS",
    "DEFAULT_THEME",
    "TEXTUAL_THEMES",
    "THEMES",
    "THEME_COLORS",
    "THEME_NAMES",
    "apply_theme",
    "get_content_type_color",
    "get_tag_color",
]

"""Theme system: color palettes, category colors, and Textual theme builders."""

from __future__ import annotations

import zlib

from textual.theme import Theme as TextualTheme

DEFAULT_THEME = {
    "background": "#272822",
    "panel": "#1e1e1e",
    "panel_alt": "#3e3d32",
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

SOLARIZED_DARK_THEME: dict[str, str] = {
    "background": "#002b36",
    "panel": "#073642",
    "panel_alt": "#586e75",
    "text": "#839496",
    "muted": "#586e75",
    "accent": "#268bd2",
    "accent_alt": "#b58900",
    "green": "#859900",
    "yellow": "#b58900",
    "orange": "#cb4b16",
    "pink": "#d33682",
    "purple": "#6c71c4",
    "highlight": "#073642",
    "highlight_focus": "#586e75",
    "scrollbar_background": "#073642",
    "scrollbar": "#657b83",
    "scrollbar_active": "#268bd2",
    "scrollbar_hover": "#93a1a1",
}

THEMES: dict[str, dict[str, str]] = {
    "monokai": DEFAULT_THEME,
    "solarized-dark": SOLARIZED_DARK_THEME,
}
THEME_NAMES: list[str] = list(THEMES.keys())


def _build_textual_theme(name: str, colors: dict[str, str]) -> TextualTheme:
    """Convert an app color dict to a Textual Theme with custom CSS variables.

    Color keys map to $th-* CSS variables used by APP_CSS.
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
        "th-error": colors["pink"],
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

THEME_COLORS = DEFAULT_THEME.copy()

# Category palette, picked by a stable checksum of the category name
_CATEGORY_PALETTE_KEYS = ("pink", "accent", "green", "yellow", "purple", "orange")


def apply_theme_colors(name: str) -> None:
    """Point THEME_COLORS at the named palette (unknown names keep the default)."""
    THEME_COLORS.clear()
    THEME_COLORS.update(THEMES.get(name, DEFAULT_THEME))


def get_category_color(category: str) -> str:
    """Return a display color for a category, stable across runs."""
    index = zlib.crc32(category.lower().encode("utf-8")) % len(_CATEGORY_PALETTE_KEYS)
    return THEME_COLORS[_CATEGORY_PALETTE_KEYS[index]]


__all__ = [
    "DEFAULT_THEME",
    "SOLARIZED_DARK_THEME",
    "TEXTUAL_THEMES",
    "THEMES",
    "THEME_COLORS",
    "THEME_NAMES",
    "apply_theme_colors",
    "get_category_color",
]

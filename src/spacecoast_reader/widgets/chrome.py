"""Widget chrome: context footer with key hints."""

from __future__ import annotations

from textual.widgets import Static

from spacecoast_reader.query import escape_rich_text
from spacecoast_reader.themes import THEME_COLORS


class ContextFooter(Static):
    """Context-sensitive footer showing relevant keybindings."""

    DEFAULT_CSS = """
    ContextFooter {
        dock: bottom;
        height: 1;
        background: $th-background;
        color: $th-muted;
        padding: 0 1;
        border-top: solid $th-panel-alt;
    }
    """

    def render_bindings(self, bindings: list[tuple[str, str]]) -> None:
        """Update the footer with a list of (key, label) binding hints."""
        accent = THEME_COLORS["accent"]
        muted = THEME_COLORS["muted"]
        parts = []
        for key, label in bindings:
            safe_key = escape_rich_text(key)
            if key and label:
                parts.append(f"[bold {accent}]{safe_key}[/] [{muted}]{label}[/]")
            elif label:
                parts.append(f"[italic {muted}]{label}[/]")
            else:
                parts.append(f"[italic {muted}]{safe_key}[/]")
        self.update("  ".join(parts))


__all__ = [
    "ContextFooter",
]

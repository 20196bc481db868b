"""Scrollable viewport for rendered document lines."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Static

from spacecoast_reader.state import Key


class DocumentViewport(VerticalScroll, inherit_bindings=False):
    """Read-only scroll area; scrolling is driven by the state machine's effects."""

    DEFAULT_CSS = """
    DocumentViewport {
        height: 1fr;
        padding: 0 1;
    }
    """

    def __init__(self, *, id: str | None = None) -> None:
        super().__init__(id=id)
        self._lines: tuple[str, ...] = ()

    def compose(self) -> ComposeResult:
        yield Static("", id="document-body")

    @property
    def lines(self) -> tuple[str, ...]:
        return self._lines

    def set_lines(self, lines: tuple[str, ...], *, reset_scroll: bool = True) -> None:
        """Replace the displayed content with ANSI-styled lines."""
        if lines == self._lines:
            return
        self._lines = lines
        self.query_one("#document-body", Static).update(Text.from_ansi("\n".join(lines)))
        if reset_scroll:
            self.scroll_home(animate=False)

    def clear(self) -> None:
        self.set_lines(())

    def scroll_for_key(self, key: Key) -> None:
        """Apply a navigation key forwarded from the state machine."""
        if key is Key.UP:
            self.scroll_up(animate=False)
        elif key is Key.DOWN:
            self.scroll_down(animate=False)
        elif key is Key.PAGE_UP:
            self.scroll_page_up(animate=False)
        elif key is Key.PAGE_DOWN:
            self.scroll_page_down(animate=False)
        elif key is Key.TOP:
            self.scroll_home(animate=False)
        elif key is Key.BOTTOM:
            self.scroll_end(animate=False)


__all__ = [
    "DocumentViewport",
]

"""Detail screen: document header plus the scrollable rendered body."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import Screen
from textual.widgets import Label, Static

from spacecoast_reader.models import DocumentMetadata
from spacecoast_reader.query import escape_rich_text, format_published
from spacecoast_reader.state import Detail, Key
from spacecoast_reader.ui_constants import DETAIL_FOOTER_HINTS
from spacecoast_reader.widgets import ContextFooter, DocumentViewport


def build_detail_meta(document: DocumentMetadata) -> str:
    """One-line date/category/tags summary under the title."""
    parts = [format_published(document.published)]
    if document.category:
        parts.append(escape_rich_text(document.category))
    if document.tags:
        parts.append(" ".join(f"#{escape_rich_text(tag)}" for tag in document.tags))
    return "  ·  ".join(parts)


class DetailScreen(Screen[None]):
    """Shows one Detail state; scrolling arrives as forwarded keys."""

    def __init__(self) -> None:
        super().__init__()
        self._detail: Detail | None = None

    def compose(self) -> ComposeResult:
        yield Label("", id="detail-header")
        yield Static("", id="detail-meta")
        with Vertical(id="detail-pane"):
            yield DocumentViewport(id="viewport")
        yield ContextFooter()

    def on_mount(self) -> None:
        self.query_one(ContextFooter).render_bindings(DETAIL_FOOTER_HINTS)
        self._apply(previous=None)

    @property
    def viewport(self) -> DocumentViewport:
        return self.query_one("#viewport", DocumentViewport)

    def show(self, detail: Detail | None) -> None:
        """Display *detail*; ``None`` clears the viewport content."""
        previous = self._detail
        if detail is None and previous is None:
            return
        self._detail = detail
        if self.is_mounted:
            self._apply(previous)

    def _apply(self, previous: Detail | None) -> None:
        detail = self._detail
        if detail is None:
            self.query_one("#detail-header", Label).update("")
            self.query_one("#detail-meta", Static).update("")
            self.viewport.clear()
            return
        document = detail.document
        self.query_one("#detail-header", Label).update(escape_rich_text(document.display_title))
        self.query_one("#detail-meta", Static).update(build_detail_meta(document))
        same_document = previous is not None and previous.document is document
        self.viewport.set_lines(detail.rendered.lines, reset_scroll=not same_document)
        self.viewport.focus()

    def handle_forwarded_key(self, key: Key) -> None:
        self.viewport.scroll_for_key(key)


__all__ = [
    "DetailScreen",
    "build_detail_meta",
]

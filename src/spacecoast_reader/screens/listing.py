"""Listing screen: entry list, filter sub-mode, fetch status."""

from __future__ import annotations

import logging

from textual import on
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.screen import Screen
from textual.widgets import Input, Label, OptionList, Static
from textual.widgets.option_list import Option

from spacecoast_reader.action_messages import (
    build_entry_count_label,
    build_fetch_error_message,
    build_skipped_warning,
)
from spacecoast_reader.models import DocumentMetadata
from spacecoast_reader.query import escape_rich_text, filter_documents
from spacecoast_reader.state import Key, Listing
from spacecoast_reader.ui_constants import FILTER_FOOTER_HINTS, LISTING_FOOTER_HINTS
from spacecoast_reader.widgets import ContextFooter, render_entry_option

logger = logging.getLogger(__name__)

LOADING_MESSAGE = "Fetching posts..."
EMPTY_MESSAGE = "No posts published yet."
NO_MATCHES_MESSAGE = "No posts match the filter."


class ListingScreen(Screen[None]):
    """Shows the entry list for a Listing state and owns the filter sub-mode."""

    class FilterToggled(Message):
        """The filter input opened (True) or closed (False)."""

        def __init__(self, active: bool) -> None:
            super().__init__()
            self.active = active

    def __init__(self) -> None:
        super().__init__()
        self._listing = Listing()
        self._visible: list[DocumentMetadata] = []
        self._query = ""

    def compose(self) -> ComposeResult:
        with Vertical(id="listing-pane"):
            yield Label(build_entry_count_label(0, 0), id="list-header")
            with Vertical(id="filter-container"):
                yield Input(placeholder=" Filter: title, summary, category, tag", id="filter-input")
            yield Static("", id="fetch-error")
            yield OptionList(id="entry-list")
        yield Label("", id="status-bar")
        yield ContextFooter()

    def on_mount(self) -> None:
        self._apply()

    # ── State sync ────────────────────────────────────────────────────────

    def show(self, listing: Listing) -> None:
        """Display a Listing state (entries are replaced wholesale)."""
        entries_changed = listing.entries is not self._listing.entries
        self._listing = listing
        if listing.loading and self._query:
            # A fresh fetch starts from the unfiltered list.
            self._query = ""
            entries_changed = True
            if self.is_mounted:
                self.query_one("#filter-input", Input).value = ""
        if self.is_mounted:
            self._apply(refresh_entries=entries_changed)

    def _apply(self, refresh_entries: bool = True) -> None:
        listing = self._listing
        if refresh_entries:
            self._refresh_entries()
        error = self.query_one("#fetch-error", Static)
        if listing.error is not None:
            error.update(escape_rich_text(build_fetch_error_message(listing.error)))
            error.add_class("visible")
        else:
            error.update("")
            error.remove_class("visible")
        self._update_status()
        self._update_footer()
        if not self._filter_visible():
            self.query_one("#entry-list", OptionList).focus()

    def _refresh_entries(self) -> None:
        option_list = self.query_one("#entry-list", OptionList)
        previous = self.highlighted_document()
        self._visible = filter_documents(self._query, list(self._listing.entries))
        option_list.clear_options()
        option_list.add_options(
            [Option(render_entry_option(doc)) for doc in self._visible]
        )
        if self._visible:
            index = 0
            if previous is not None and previous in self._visible:
                index = self._visible.index(previous)
            option_list.highlighted = index
        self.query_one("#list-header", Label).update(
            build_entry_count_label(len(self._visible), len(self._listing.entries))
        )

    def _update_status(self) -> None:
        listing = self._listing
        if listing.loading:
            text = LOADING_MESSAGE
        elif listing.error is not None:
            text = ""
        elif not listing.entries:
            text = EMPTY_MESSAGE
        elif not self._visible:
            text = NO_MATCHES_MESSAGE
        else:
            text = ""
        if listing.skipped and not listing.loading and listing.error is None:
            note = build_skipped_warning(listing.skipped)
            text = f"{text}  {note}".strip()
        self.query_one("#status-bar", Label).update(text)

    def _update_footer(self) -> None:
        hints = FILTER_FOOTER_HINTS if self._filter_visible() else LISTING_FOOTER_HINTS
        self.query_one(ContextFooter).render_bindings(hints)

    # ── List access ───────────────────────────────────────────────────────

    @property
    def visible_documents(self) -> list[DocumentMetadata]:
        return list(self._visible)

    def highlighted_document(self) -> DocumentMetadata | None:
        """Entry under the list cursor, if any."""
        if not self.is_mounted:
            return None
        index = self.query_one("#entry-list", OptionList).highlighted
        if index is None or not 0 <= index < len(self._visible):
            return None
        return self._visible[index]

    def document_at(self, index: int | None) -> DocumentMetadata | None:
        if index is None or not 0 <= index < len(self._visible):
            return None
        return self._visible[index]

    # ── Keys forwarded from the state machine ─────────────────────────────

    def handle_forwarded_key(self, key: Key) -> None:
        option_list = self.query_one("#entry-list", OptionList)
        if key is Key.FILTER:
            self.open_filter()
        elif key is Key.BACK:
            self.cancel_filter()
        elif key is Key.CONFIRM:
            self.close_filter()
        elif key is Key.UP:
            option_list.action_cursor_up()
        elif key is Key.DOWN:
            option_list.action_cursor_down()
        elif key is Key.PAGE_UP:
            option_list.action_page_up()
        elif key is Key.PAGE_DOWN:
            option_list.action_page_down()
        elif key is Key.TOP:
            option_list.action_first()
        elif key is Key.BOTTOM:
            option_list.action_last()

    # ── Filter sub-mode ───────────────────────────────────────────────────

    @property
    def filter_active(self) -> bool:
        """Whether the filter input is open."""
        return self.is_mounted and self._filter_visible()

    def _filter_visible(self) -> bool:
        return "visible" in self.query_one("#filter-container").classes

    def open_filter(self) -> None:
        container = self.query_one("#filter-container")
        if "visible" in container.classes:
            return
        container.add_class("visible")
        self.query_one("#filter-input", Input).focus()
        self._update_footer()
        self.post_message(self.FilterToggled(True))

    def close_filter(self) -> None:
        """Hide the filter input and keep the current query applied."""
        container = self.query_one("#filter-container")
        if "visible" not in container.classes:
            return
        container.remove_class("visible")
        self.query_one("#entry-list", OptionList).focus()
        self._update_footer()
        self.post_message(self.FilterToggled(False))

    def cancel_filter(self) -> None:
        """Hide the filter input and clear the query."""
        self.query_one("#filter-input", Input).value = ""
        self._set_query("")
        self.close_filter()

    def _set_query(self, query: str) -> None:
        if query == self._query:
            return
        self._query = query
        self._refresh_entries()
        self._update_status()
        logger.debug("Filter applied: query=%r, matched=%d", query, len(self._visible))

    @on(Input.Changed, "#filter-input")
    def on_filter_changed(self, event: Input.Changed) -> None:
        self._set_query(event.value)

    @on(Input.Submitted, "#filter-input")
    def on_filter_submitted(self, event: Input.Submitted) -> None:
        self._set_query(event.value)
        self.close_filter()


__all__ = [
    "EMPTY_MESSAGE",
    "LOADING_MESSAGE",
    "NO_MATCHES_MESSAGE",
    "ListingScreen",
]

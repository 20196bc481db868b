"""Internal UI constants for the ContentBrowser app."""

from __future__ import annotations

from textual.binding import Binding, BindingType

APP_CSS = """
Screen {
    background: $th-background;
}

Header {
    background: $th-panel-alt;
    color: $th-text;
}

#splash-container {
    width: 100%;
    height: 1fr;
    align: center middle;
}

#splash-message {
    width: auto;
    color: $th-text;
    text-style: bold;
}

#splash-prompt {
    width: auto;
    height: 1;
    margin-top: 1;
    color: $th-accent;
}

#listing-pane {
    height: 1fr;
    border: tall $th-highlight;
    background: $th-panel;
}

#listing-pane:focus-within {
    border: tall $th-accent;
}

#list-header, #detail-header {
    padding: 0 1;
    background: $th-panel;
    color: $th-accent;
    text-style: bold;
}

#detail-meta {
    padding: 0 1;
    color: $th-muted;
}

#entry-list {
    height: 1fr;
    scrollbar-gutter: stable;
}

#entry-list > .option-list--option-highlighted {
    background: $th-highlight;
}

#entry-list:focus > .option-list--option-highlighted {
    background: $th-highlight-focus;
}

#filter-container {
    height: auto;
    padding: 0 1;
    background: $th-panel;
    display: none;
}

#filter-container.visible {
    display: block;
}

#filter-input {
    width: 100%;
    border: tall $th-accent;
    background: $th-background;
}

#fetch-error {
    padding: 1 2;
    color: $th-error;
    display: none;
}

#fetch-error.visible {
    display: block;
}

#detail-pane {
    height: 1fr;
    border: tall $th-highlight;
    background: $th-panel;
}

#detail-pane:focus-within {
    border: tall $th-accent;
}

VerticalScroll {
    scrollbar-background: $th-scrollbar-bg;
    scrollbar-color: $th-scrollbar-thumb;
    scrollbar-color-hover: $th-scrollbar-hover;
    scrollbar-color-active: $th-scrollbar-active;
}

#status-bar {
    padding: 0 1;
    color: $th-muted;
}
"""

# Every binding funnels into the state machine through action_key().
APP_BINDINGS: list[BindingType] = [
    Binding("enter", "key('confirm')", "Open", show=False),
    Binding("escape", "key('back')", "Back", show=False),
    Binding("q", "key('quit')", "Quit", show=False),
    Binding("slash", "key('filter')", "Filter", show=False),
    Binding("up,k", "key('up')", "Up", show=False),
    Binding("down,j", "key('down')", "Down", show=False),
    Binding("pageup,b", "key('page_up')", "Page Up", show=False),
    Binding("pagedown,space,f", "key('page_down')", "Page Down", show=False),
    Binding("home,g", "key('top')", "Top", show=False),
    Binding("end,G", "key('bottom')", "Bottom", show=False),
]

SPLASH_FOOTER_HINTS: list[tuple[str, str]] = [
    ("Enter", "continue"),
    ("q", "quit"),
]

LISTING_FOOTER_HINTS: list[tuple[str, str]] = [
    ("Enter", "read"),
    ("j/k", "move"),
    ("/", "filter"),
    ("Esc", "back"),
    ("q", "quit"),
]

FILTER_FOOTER_HINTS: list[tuple[str, str]] = [
    ("type to filter", ""),
    ("Enter", "apply"),
    ("Esc", "clear"),
]

DETAIL_FOOTER_HINTS: list[tuple[str, str]] = [
    ("j/k", "scroll"),
    ("PgUp/PgDn", "page"),
    ("g/G", "top/bottom"),
    ("Esc/q", "back"),
]

__all__ = [
    "APP_BINDINGS",
    "APP_CSS",
    "DETAIL_FOOTER_HINTS",
    "FILTER_FOOTER_HINTS",
    "LISTING_FOOTER_HINTS",
    "SPLASH_FOOTER_HINTS",
]

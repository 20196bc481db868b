"""List rendering helpers for document entries."""

from __future__ import annotations

from spacecoast_reader.models import DocumentMetadata
from spacecoast_reader.query import escape_rich_text, format_published, truncate_text
from spacecoast_reader.themes import THEME_COLORS, get_category_color

SUMMARY_PREVIEW_MAX_LEN = 120  # Max summary preview length in list rows


def _render_title_line(document: DocumentMetadata) -> str:
    title = escape_rich_text(document.display_title)
    date = format_published(document.published)
    return f"[bold]{title}[/]  [{THEME_COLORS['muted']}]{date}[/]"


def _render_meta_line(document: DocumentMetadata) -> str:
    parts: list[str] = []
    if document.category:
        color = get_category_color(document.category)
        parts.append(f"[{color}]{escape_rich_text(document.category)}[/]")
    if document.tags:
        parts.append(
            " ".join(
                f"[{THEME_COLORS['purple']}]#{escape_rich_text(tag)}[/]" for tag in document.tags
            )
        )
    return "  ".join(parts)


def _render_summary_line(document: DocumentMetadata) -> str:
    if not document.summary:
        return ""
    summary = truncate_text(" ".join(document.summary.split()), SUMMARY_PREVIEW_MAX_LEN)
    return f"[dim italic]{escape_rich_text(summary)}[/]"


def render_entry_option(document: DocumentMetadata) -> str:
    """Rich markup for one OptionList row."""
    lines = [_render_title_line(document)]
    meta = _render_meta_line(document)
    if meta:
        lines.append(meta)
    summary = _render_summary_line(document)
    if summary:
        lines.append(summary)
    return "\n".join(lines)


__all__ = [
    "SUMMARY_PREVIEW_MAX_LEN",
    "render_entry_option",
]

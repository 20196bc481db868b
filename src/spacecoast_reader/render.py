"""Render pipeline: document body -> footnoted markdown -> wrapped terminal lines."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from io import StringIO

from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound
from rich.console import Console
from rich.markdown import Markdown
from rich.text import Text

from spacecoast_reader.errors import RenderError
from spacecoast_reader.models import DEFAULT_CODE_THEME
from spacecoast_reader.transform import footnote_links, strip_markup

logger = logging.getLogger(__name__)

INIT_ERROR_MESSAGE = "Error initializing renderer."
RENDER_ERROR_MESSAGE = "Error rendering content."

MIN_CONTENT_WIDTH = 20
VIEWPORT_HORIZONTAL_CHROME = 4  # Border + padding + scrollbar gutter

_FENCE_PATTERN = re.compile(r"^\s*(```|~~~)")
# "[n]: url" would otherwise be consumed as a link reference definition.
_REFERENCE_LINE_PATTERN = re.compile(r"^\[(\d+)\]: ", re.MULTILINE)


@dataclass(slots=True, frozen=True)
class RenderedDocument:
    """Display lines (ANSI styled) plus the error that produced a fallback, if any."""

    lines: tuple[str, ...]
    error: RenderError | None = None

    @property
    def plain_lines(self) -> list[str]:
        """Lines with styling removed."""
        return [Text.from_ansi(line).plain for line in self.lines]


def content_width(viewport_width: int) -> int:
    """Wrap width for a viewport of the given terminal width."""
    return max(MIN_CONTENT_WIDTH, viewport_width - VIEWPORT_HORIZONTAL_CHROME)


def preserve_line_breaks(text: str) -> str:
    """Turn single newlines outside fenced code into markdown hard breaks."""
    lines = text.split("\n")
    in_fence = False
    out: list[str] = []
    for i, line in enumerate(lines):
        if _FENCE_PATTERN.match(line):
            in_fence = not in_fence
            out.append(line)
            continue
        next_line = lines[i + 1] if i + 1 < len(lines) else ""
        if (
            not in_fence
            and line.strip()
            and next_line.strip()
            and not _FENCE_PATTERN.match(next_line)
        ):
            out.append(f"{line.rstrip()}  ")
        else:
            out.append(line)
    return "\n".join(out)


def prepare_markdown(body: str) -> str:
    """Strip non-content markup and convert links to footnotes."""
    text = footnote_links(strip_markup(body))
    return _REFERENCE_LINE_PATTERN.sub(r"\\[\1]: ", text)


def _build_console(width: int, code_theme: str) -> tuple[Console, StringIO]:
    if width <= 0:
        raise ValueError(f"invalid wrap width {width}")
    # Rich silently falls back to a default theme; validate up front instead.
    get_style_by_name(code_theme)
    buffer = StringIO()
    console = Console(
        file=buffer,
        width=width,
        force_terminal=True,
        color_system="truecolor",
        legacy_windows=False,
    )
    return console, buffer


def render_document(
    body: str | None,
    width: int,
    *,
    code_theme: str = DEFAULT_CODE_THEME,
) -> RenderedDocument:
    """Render a document body for a viewport wrap *width*.

    Never raises: formatter construction or formatting failures produce a
    single placeholder line and a ``RenderError``.
    """
    try:
        console, buffer = _build_console(width, code_theme)
    except (ClassNotFound, ValueError) as exc:
        logger.warning("Could not initialize markdown renderer: %s", exc)
        return RenderedDocument((INIT_ERROR_MESSAGE,), RenderError(str(exc)))

    markup = preserve_line_breaks(prepare_markdown(body or ""))
    try:
        console.print(Markdown(markup, code_theme=code_theme, hyperlinks=False))
    except Exception as exc:
        logger.warning("Markdown rendering failed", exc_info=True)
        return RenderedDocument((RENDER_ERROR_MESSAGE,), RenderError(str(exc)))

    rendered = buffer.getvalue().rstrip("\n")
    return RenderedDocument(tuple(rendered.split("\n")))


__all__ = [
    "INIT_ERROR_MESSAGE",
    "MIN_CONTENT_WIDTH",
    "RENDER_ERROR_MESSAGE",
    "RenderedDocument",
    "content_width",
    "prepare_markdown",
    "preserve_line_breaks",
    "render_document",
]

"""Text transforms applied to document bodies before formatting.

``footnote_links`` turns inline markdown links into numbered footnote
references with a trailing reference list. ``strip_markup`` removes MDX
fragments that have no meaning in a terminal.
"""

from __future__ import annotations

import re

FOOTNOTE_SEPARATOR = "---"
FOOTNOTE_HEADER = "Footnotes"

# First non-greedy "]" then first ")"; nested brackets are not supported.
_INLINE_LINK_PATTERN = re.compile(r"\[(.*?)\]\((.*?)\)")
_FOOTNOTE_MARKER_PATTERN = re.compile(r"^\[\d+\]$")
_FOOTNOTE_TARGET_PREFIXES = ("#fn:", "#fnref:")

_ANGLE_TAG_PATTERN = re.compile(r"<[^<>]+>")
_TEMPLATE_EXPRESSION_PATTERN = re.compile(r"\{[^{}]*\}")

# MDX component imports emitted by the site generator
KNOWN_IMPORT_LITERALS: tuple[str, ...] = (
    'import { Image } from "astro:assets";',
    "import { Image } from 'astro:assets';",
)


def _is_footnote_marker(label: str) -> bool:
    # Link text "[3]" as in "[[3]](...)"
    return _FOOTNOTE_MARKER_PATTERN.match(label) is not None


def _is_footnote_target(url: str) -> bool:
    return url.startswith(_FOOTNOTE_TARGET_PREFIXES)


def format_footnote_block(urls: list[str]) -> str:
    """Build the reference list appended after the body."""
    lines = [f"[{n}]: {url}" for n, url in enumerate(urls, start=1)]
    return "\n\n".join([FOOTNOTE_SEPARATOR, FOOTNOTE_HEADER, "\n".join(lines)])


def footnote_links(text: str) -> str:
    """Replace ``[text](url)`` links with ``text [n]`` and append the URLs.

    Links whose text is already a marker like ``[3]`` and links pointing
    at ``#fn:``/``#fnref:`` anchors are left untouched, so applying the
    transform twice changes nothing the second time. Text without any
    convertible link is returned unchanged.
    """
    urls: list[str] = []

    def _replace(match: re.Match[str]) -> str:
        label, url = match.group(1), match.group(2)
        if _is_footnote_marker(label) or _is_footnote_target(url):
            return match.group(0)
        urls.append(url)
        return f"{label} [{len(urls)}]"

    transformed = _INLINE_LINK_PATTERN.sub(_replace, text)
    if not urls:
        return text
    return f"{transformed}\n\n{format_footnote_block(urls)}"


def strip_markup(text: str) -> str:
    """Remove known import statements, angle-bracket tags, and ``{...}`` expressions."""
    for literal in KNOWN_IMPORT_LITERALS:
        text = text.replace(literal, "")
    text = _ANGLE_TAG_PATTERN.sub("", text)
    return _TEMPLATE_EXPRESSION_PATTERN.sub("", text)


__all__ = [
    "FOOTNOTE_HEADER",
    "FOOTNOTE_SEPARATOR",
    "KNOWN_IMPORT_LITERALS",
    "footnote_links",
    "format_footnote_block",
    "strip_markup",
]

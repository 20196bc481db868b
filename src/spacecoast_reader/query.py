"""Listing filter helpers: fuzzy matching and text utilities."""

from __future__ import annotations

from datetime import datetime

from rapidfuzz import fuzz
from rich.markup import escape as escape_markup

from spacecoast_reader.models import DocumentMetadata

FUZZY_SCORE_CUTOFF = 60  # Minimum score (0-100) to include in results
FUZZY_LIMIT = 100  # Maximum number of results to return
PUBLISHED_DATE_FORMAT = "%Y-%m-%d"


def truncate_text(text: str, max_len: int, suffix: str = "...") -> str:
    """Truncate text to max_len characters, adding suffix if truncated."""
    if len(text) <= max_len:
        return text
    return text[:max_len] + suffix


def escape_rich_text(text: str) -> str:
    """Escape text for safe Rich markup rendering."""
    return escape_markup(text) if text else ""


def format_published(published: datetime) -> str:
    """Short date for list rows and the detail header."""
    return published.strftime(PUBLISHED_DATE_FORMAT)


def document_search_text(document: DocumentMetadata) -> str:
    """Text a filter query is matched against."""
    parts = [document.title, document.summary, document.category or "", *document.tags]
    return " ".join(part for part in parts if part)


def filter_documents(query: str, documents: list[DocumentMetadata]) -> list[DocumentMetadata]:
    """Filter documents by a free-text query.

    Exact substring hits come first in list order, followed by fuzzy
    matches ordered by score. An empty query returns the input unchanged.
    """
    query = query.strip().lower()
    if not query:
        return list(documents)

    exact: list[DocumentMetadata] = []
    scored: list[tuple[DocumentMetadata, float]] = []
    for document in documents:
        text = document_search_text(document).lower()
        if query in text:
            exact.append(document)
            continue
        score = fuzz.WRatio(query, text)
        if score >= FUZZY_SCORE_CUTOFF:
            scored.append((document, score))

    scored.sort(key=lambda item: item[1], reverse=True)
    fuzzy = [document for document, _ in scored]
    return (exact + fuzzy)[:FUZZY_LIMIT]


__all__ = [
    "FUZZY_LIMIT",
    "FUZZY_SCORE_CUTOFF",
    "document_search_text",
    "escape_rich_text",
    "filter_documents",
    "format_published",
    "truncate_text",
]

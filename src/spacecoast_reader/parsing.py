"""Listing payload decoding, frontmatter splitting, and metadata parsing."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from pathlib import PurePosixPath
from typing import Any

import yaml

from spacecoast_reader.errors import ParseError
from spacecoast_reader.models import DocumentMetadata, ListingEntry

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"

# Frontmatter keys, first match wins
_SUMMARY_KEYS = ("excerpt", "summary", "description")
_PUBLISHED_KEYS = ("publishDate", "pubDate", "date")


def parse_listing(payload: Any) -> list[ListingEntry]:
    """Decode a contents-API directory listing into entries.

    Raises:
        ParseError: when the payload is not a JSON array.
    """
    if not isinstance(payload, list):
        raise ParseError(f"expected a JSON array, got {type(payload).__name__}")

    entries: list[ListingEntry] = []
    for item in payload:
        if not isinstance(item, dict):
            logger.debug("Skipping non-object listing item: %r", item)
            continue
        name = item.get("name")
        if not isinstance(name, str) or not name:
            logger.debug("Skipping listing item without a name: %r", item)
            continue
        download_url = item.get("download_url")
        entries.append(
            ListingEntry(
                name=name,
                path=item.get("path") if isinstance(item.get("path"), str) else name,
                entry_type=item.get("type") if isinstance(item.get("type"), str) else "",
                download_url=download_url if isinstance(download_url, str) else None,
            )
        )
    return entries


def has_document_suffix(entry: ListingEntry, suffix: str) -> bool:
    """Return True for files whose name ends with the document suffix."""
    return entry.is_file and entry.name.lower().endswith(suffix.lower())


def split_frontmatter(text: str, *, name: str | None = None) -> tuple[str, str, str]:
    """Split ``---\\n<metadata>\\n---\\n<content>`` into its three parts.

    Only the first two delimiters split; later ``---`` lines stay in the body.
    """
    parts = text.split(FRONTMATTER_DELIMITER, 2)
    if len(parts) < 3:
        raise ParseError("malformed frontmatter: missing '---' delimiters", name=name)
    preamble, block, body = parts
    return preamble, block, body


def parse_publish_date(value: Any) -> datetime:
    """Normalize a frontmatter date to a timezone-aware datetime (UTC if naive)."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise ParseError(f"invalid publish date {value!r}") from exc
    else:
        raise ParseError(f"invalid publish date {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_tags(raw: Any) -> list[str]:
    if isinstance(raw, str):
        return [tag.strip() for tag in raw.split(",") if tag.strip()]
    if isinstance(raw, list):
        return [str(tag).strip() for tag in raw if tag is not None and str(tag).strip()]
    return []


def _first_present(data: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_metadata_block(block: str, *, name: str) -> DocumentMetadata:
    """Decode a YAML frontmatter block into document metadata (body unset)."""
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise ParseError(f"invalid frontmatter YAML: {exc}", name=name) from exc
    if not isinstance(data, dict):
        raise ParseError("frontmatter is not a key/value mapping", name=name)

    published_raw = _first_present(data, _PUBLISHED_KEYS)
    if published_raw is None:
        raise ParseError("frontmatter has no publish date", name=name)
    try:
        published = parse_publish_date(published_raw)
    except ParseError as exc:
        raise ParseError(exc.cause, name=name) from exc

    title = data.get("title")
    summary = _first_present(data, _SUMMARY_KEYS)
    slug = _optional_str(data.get("slug")) or PurePosixPath(name).stem
    return DocumentMetadata(
        title=str(title) if title is not None else "",
        summary=str(summary).strip() if summary is not None else "",
        published=published,
        slug=slug,
        category=_optional_str(data.get("category")),
        tags=_parse_tags(data.get("tags")),
        image=_optional_str(data.get("image")),
        source_name=name,
    )


def parse_document(text: str, *, name: str) -> DocumentMetadata:
    """Parse a downloaded document into metadata with its trimmed body."""
    _, block, body = split_frontmatter(text, name=name)
    document = parse_metadata_block(block, name=name)
    document.body = body.strip()
    return document


def sort_documents(documents: list[DocumentMetadata]) -> list[DocumentMetadata]:
    """Newest first; equal timestamps keep their arrival order."""
    return sorted(documents, key=lambda doc: doc.published, reverse=True)


__all__ = [
    "FRONTMATTER_DELIMITER",
    "has_document_suffix",
    "parse_document",
    "parse_listing",
    "parse_metadata_block",
    "parse_publish_date",
    "sort_documents",
    "split_frontmatter",
]

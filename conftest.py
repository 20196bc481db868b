"""Shared test fixtures for the Space Coast Devs reader tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from spacecoast_reader.models import DocumentMetadata, UserConfig
from spacecoast_reader.themes import DEFAULT_THEME, THEME_COLORS

# ── Module-level dict isolation ──────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_theme_colors():
    """Restore THEME_COLORS after each test.

    ContentBrowser.__init__ points THEME_COLORS at the configured palette.
    """
    yield
    THEME_COLORS.clear()
    THEME_COLORS.update(DEFAULT_THEME)


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_document():
    """Factory fixture for creating DocumentMetadata with sensible defaults."""

    def _make(
        title: str = "Launch Night Recap",
        summary: str = "What we built at the last meetup.",
        published: datetime | str = "2024-03-01",
        slug: str | None = None,
        category: str | None = "events",
        tags: list[str] | None = None,
        body: str | None = "Hello **world**.",
        source_name: str = "",
    ) -> DocumentMetadata:
        if isinstance(published, str):
            published = datetime.fromisoformat(published).replace(tzinfo=timezone.utc)
        if slug is None:
            slug = title.lower().replace(" ", "-")
        return DocumentMetadata(
            title=title,
            summary=summary,
            published=published,
            slug=slug,
            category=category,
            tags=list(tags) if tags is not None else ["meetup"],
            body=body,
            source_name=source_name or f"{slug}.mdx",
        )

    return _make


@pytest.fixture
def make_post_text():
    """Factory fixture for raw document text with a YAML frontmatter block."""

    def _make(
        title: str = "Launch Night Recap",
        published: str = "2024-03-01",
        body: str = "Hello **world**.",
        extra: str = "",
    ) -> str:
        return (
            "---\n"
            f"title: {title}\n"
            "excerpt: What we built at the last meetup.\n"
            f"publishDate: {published}\n"
            "category: events\n"
            "tags: [meetup, python]\n"
            f"{extra}"
            "---\n"
            f"{body}\n"
        )

    return _make


@pytest.fixture
def sample_config():
    """Factory fixture for creating UserConfig with optional overrides."""

    def _make(**kwargs: Any) -> UserConfig:
        return UserConfig(**kwargs)

    return _make

"""Error taxonomy for fetching and rendering remote documents.

These are carried as values (inside ``FetchResult`` or ``RenderedDocument``)
and are never allowed to escape into the UI event loop.
"""

from __future__ import annotations


class ContentError(Exception):
    """Base class for content pipeline failures."""

    kind = "content"

    def __init__(self, cause: str | BaseException, *, name: str | None = None) -> None:
        cause = str(cause)
        super().__init__(cause)
        self.cause = cause
        self.name = name

    def __str__(self) -> str:
        if self.name:
            return f"{self.name}: {self.cause}"
        return self.cause


class ListError(ContentError):
    """The remote document listing could not be retrieved."""

    kind = "list"


class ParseError(ContentError):
    """A listing payload or a document's frontmatter could not be decoded."""

    kind = "parse"


class DownloadError(ContentError):
    """Transport failure while downloading one document."""

    kind = "download"


class RenderError(ContentError):
    """The markdown formatter could not be built or failed while formatting."""

    kind = "render"


__all__ = [
    "ContentError",
    "DownloadError",
    "ListError",
    "ParseError",
    "RenderError",
]

"""Data models and constants for the Space Coast Devs reader."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spacecoast_reader.errors import ContentError

# Application identity: single source of truth for platformdirs config paths
CONFIG_APP_NAME = "spacecoast-reader"

# Remote content source defaults (GitHub contents API)
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_OWNER = "spacecoastdevs"
DEFAULT_REPO = "spacecoastdevs.github.io"
DEFAULT_CONTENT_PATH = "src/content/blog"
DEFAULT_DOCUMENT_SUFFIX = ".mdx"

DEFAULT_REQUEST_TIMEOUT = 15  # Seconds per listing/download request
DEFAULT_USER_AGENT = "spacecoast-reader/1.0"
DEFAULT_MAX_CONCURRENT_DOWNLOADS = 4
MAX_CONCURRENT_DOWNLOADS_LIMIT = 16

DEFAULT_CODE_THEME = "monokai"
DEFAULT_THEME_NAME = "monokai"
DEFAULT_BLINK_INTERVAL = 0.5  # Seconds between splash prompt toggles

DEFAULT_SSH_HOST = "0.0.0.0"
DEFAULT_SSH_PORT = 22

UNTITLED_PLACEHOLDER = "(untitled)"


@dataclass(slots=True)
class DocumentMetadata:
    """A remotely hosted document and its frontmatter."""

    title: str
    summary: str
    published: datetime
    slug: str
    category: str | None = None
    tags: list[str] = field(default_factory=list)
    image: str | None = None
    body: str | None = None
    source_name: str = ""

    @property
    def display_title(self) -> str:
        """Title safe for rendering; never empty."""
        return self.title.strip() or UNTITLED_PLACEHOLDER


@dataclass(slots=True)
class ListingEntry:
    """One item of a remote directory listing."""

    name: str
    path: str
    entry_type: str  # "file" | "dir"
    download_url: str | None = None

    @property
    def is_file(self) -> bool:
        return self.entry_type == "file"


@dataclass(slots=True, frozen=True)
class ContentSource:
    """Owner/repository/path triple resolved against a content-hosting API."""

    owner: str = DEFAULT_OWNER
    repo: str = DEFAULT_REPO
    path: str = DEFAULT_CONTENT_PATH
    suffix: str = DEFAULT_DOCUMENT_SUFFIX
    api_url: str = DEFAULT_API_URL

    @property
    def listing_url(self) -> str:
        base = self.api_url.rstrip("/")
        path = self.path.strip("/")
        return f"{base}/repos/{self.owner}/{self.repo}/contents/{path}"


@dataclass(slots=True, frozen=True)
class FetchResult:
    """Outcome of one fetch cycle.

    A total failure carries an error and no documents. Per-entry failures
    that did not prevent other documents from loading are only counted in
    ``skipped``.
    """

    documents: tuple[DocumentMetadata, ...] = ()
    error: ContentError | None = None
    skipped: int = 0

    def __post_init__(self) -> None:
        if self.error is not None and self.documents:
            raise ValueError("a failed fetch cannot carry documents")

    @classmethod
    def success(cls, documents: list[DocumentMetadata], skipped: int = 0) -> FetchResult:
        return cls(documents=tuple(documents), skipped=skipped)

    @classmethod
    def failure(cls, error: ContentError, skipped: int = 0) -> FetchResult:
        return cls(error=error, skipped=skipped)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class UserConfig:
    """User configuration for the content source, rendering, and remote sessions."""

    owner: str = DEFAULT_OWNER
    repo: str = DEFAULT_REPO
    content_path: str = DEFAULT_CONTENT_PATH
    document_suffix: str = DEFAULT_DOCUMENT_SUFFIX
    api_url: str = DEFAULT_API_URL
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    max_concurrent_downloads: int = DEFAULT_MAX_CONCURRENT_DOWNLOADS
    code_theme: str = DEFAULT_CODE_THEME
    theme_name: str = DEFAULT_THEME_NAME
    blink_interval: float = DEFAULT_BLINK_INTERVAL
    ssh_host: str = DEFAULT_SSH_HOST
    ssh_port: int = DEFAULT_SSH_PORT
    ssh_host_key: str = ""  # Empty = <config dir>/ssh_host_key
    version: int = 1
    config_defaulted: bool = False  # Set when a corrupt file was replaced by defaults

    def content_source(self) -> ContentSource:
        """Build the remote source this config points at."""
        return ContentSource(
            owner=self.owner,
            repo=self.repo,
            path=self.content_path,
            suffix=self.document_suffix,
            api_url=self.api_url,
        )


__all__ = [
    "CONFIG_APP_NAME",
    "DEFAULT_API_URL",
    "DEFAULT_BLINK_INTERVAL",
    "DEFAULT_CODE_THEME",
    "DEFAULT_CONTENT_PATH",
    "DEFAULT_DOCUMENT_SUFFIX",
    "DEFAULT_MAX_CONCURRENT_DOWNLOADS",
    "DEFAULT_OWNER",
    "DEFAULT_REPO",
    "DEFAULT_REQUEST_TIMEOUT",
    "DEFAULT_SSH_HOST",
    "DEFAULT_SSH_PORT",
    "DEFAULT_THEME_NAME",
    "DEFAULT_USER_AGENT",
    "MAX_CONCURRENT_DOWNLOADS_LIMIT",
    "UNTITLED_PLACEHOLDER",
    "ContentSource",
    "DocumentMetadata",
    "FetchResult",
    "ListingEntry",
    "UserConfig",
]

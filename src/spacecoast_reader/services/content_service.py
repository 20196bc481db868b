"""Content fetch service: list remote documents, download, and parse them."""

from __future__ import annotations

import asyncio
import logging

import httpx

from spacecoast_reader.errors import ContentError, DownloadError, ListError, ParseError
from spacecoast_reader.models import (
    DEFAULT_MAX_CONCURRENT_DOWNLOADS,
    ContentSource,
    DocumentMetadata,
    FetchResult,
    ListingEntry,
)
from spacecoast_reader.parsing import (
    has_document_suffix,
    parse_document,
    parse_listing,
    sort_documents,
)

logger = logging.getLogger(__name__)

GITHUB_ACCEPT_HEADER = "application/vnd.github+json"


async def list_entries(
    *,
    client: httpx.AsyncClient,
    source: ContentSource,
    timeout_seconds: float,
    user_agent: str,
) -> list[ListingEntry]:
    """Request and decode the directory listing.

    Raises:
        ListError: request could not be built, transport failed, or non-2xx status.
        ParseError: the payload is not a JSON array.
    """
    headers = {"Accept": GITHUB_ACCEPT_HEADER, "User-Agent": user_agent}
    try:
        request = client.build_request(
            "GET", source.listing_url, headers=headers, timeout=timeout_seconds
        )
    except (httpx.InvalidURL, httpx.UnsupportedProtocol, ValueError) as exc:
        raise ListError(f"cannot build listing request: {exc}") from exc
    if request.url.scheme not in ("http", "https") or not request.url.host:
        raise ListError(
            f"cannot build listing request: {source.listing_url!r} is not an http(s) URL"
        )

    try:
        response = await client.send(request, follow_redirects=True)
    except httpx.HTTPError as exc:
        raise ListError(f"listing request failed: {exc}") from exc

    if not response.is_success:
        raise ListError(f"listing returned HTTP {response.status_code}")

    try:
        payload = response.json()
    except ValueError as exc:
        raise ParseError(f"listing payload is not valid JSON: {exc}") from exc
    return parse_listing(payload)


async def download_document(
    *,
    client: httpx.AsyncClient,
    entry: ListingEntry,
    timeout_seconds: float,
    user_agent: str,
) -> str:
    """Download one document body.

    Raises:
        DownloadError: on transport failure or non-2xx status.
    """
    if not entry.download_url:
        raise DownloadError("no download URL in listing", name=entry.name)
    try:
        response = await client.get(
            entry.download_url,
            headers={"User-Agent": user_agent},
            timeout=timeout_seconds,
            follow_redirects=True,
        )
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise DownloadError(f"download failed: {exc}", name=entry.name) from exc
    if not response.is_success:
        raise DownloadError(f"download returned HTTP {response.status_code}", name=entry.name)
    return response.text


async def _load_entry(
    *,
    client: httpx.AsyncClient,
    entry: ListingEntry,
    semaphore: asyncio.Semaphore,
    timeout_seconds: float,
    user_agent: str,
) -> DocumentMetadata | ContentError:
    """Download and parse one entry; failures are returned, not raised."""
    async with semaphore:
        try:
            text = await download_document(
                client=client,
                entry=entry,
                timeout_seconds=timeout_seconds,
                user_agent=user_agent,
            )
        except DownloadError as exc:
            return exc
    try:
        return parse_document(text, name=entry.name)
    except ParseError as exc:
        return exc


async def _fetch_with_client(
    client: httpx.AsyncClient,
    source: ContentSource,
    timeout_seconds: float,
    user_agent: str,
    max_concurrent: int,
) -> FetchResult:
    try:
        entries = await list_entries(
            client=client,
            source=source,
            timeout_seconds=timeout_seconds,
            user_agent=user_agent,
        )
    except ContentError as exc:
        logger.error("Fetch failed for %s: %s", source.listing_url, exc)
        return FetchResult.failure(exc)

    first_error: ContentError | None = None
    skipped = 0
    missing_locator: ContentError | None = None
    candidates: list[ListingEntry] = []
    for entry in entries:
        if not has_document_suffix(entry, source.suffix):
            continue
        if not entry.download_url:
            logger.info("Skipping %s: listing has no download URL", entry.name)
            skipped += 1
            if missing_locator is None:
                missing_locator = DownloadError("no download URL in listing", name=entry.name)
            continue
        candidates.append(entry)

    semaphore = asyncio.Semaphore(max(1, max_concurrent))
    outcomes = await asyncio.gather(
        *(
            _load_entry(
                client=client,
                entry=entry,
                semaphore=semaphore,
                timeout_seconds=timeout_seconds,
                user_agent=user_agent,
            )
            for entry in candidates
        )
    )

    documents: list[DocumentMetadata] = []
    for outcome in outcomes:
        if isinstance(outcome, ContentError):
            logger.warning("Skipping document (%s error): %s", outcome.kind, outcome)
            skipped += 1
            if first_error is None:
                first_error = outcome
            continue
        documents.append(outcome)

    if first_error is None:
        first_error = missing_locator

    if not documents and first_error is not None:
        logger.error("Fetch produced no documents; first error: %s", first_error)
        return FetchResult.failure(first_error, skipped=skipped)

    logger.info(
        "Fetched %d documents from %s (%d skipped)",
        len(documents),
        source.listing_url,
        skipped,
    )
    return FetchResult.success(sort_documents(documents), skipped=skipped)


async def fetch_documents(
    *,
    client: httpx.AsyncClient | None,
    source: ContentSource,
    timeout_seconds: float,
    user_agent: str,
    max_concurrent: int = DEFAULT_MAX_CONCURRENT_DOWNLOADS,
) -> FetchResult:
    """Run one fetch cycle and fold every failure into a ``FetchResult``.

    If *client* is None, a temporary AsyncClient is created for this cycle.
    """
    if client is not None:
        return await _fetch_with_client(
            client, source, timeout_seconds, user_agent, max_concurrent
        )
    async with httpx.AsyncClient() as tmp_client:
        return await _fetch_with_client(
            tmp_client, source, timeout_seconds, user_agent, max_concurrent
        )


__all__ = [
    "GITHUB_ACCEPT_HEADER",
    "download_document",
    "fetch_documents",
    "list_entries",
]

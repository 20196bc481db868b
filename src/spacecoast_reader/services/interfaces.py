"""Service interfaces + default adapters for app-level dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from spacecoast_reader.models import ContentSource, FetchResult
from spacecoast_reader.services import content_service as _content


@runtime_checkable
class ContentService(Protocol):
    """Interface for remote document fetch operations."""

    async def fetch_documents(
        self,
        *,
        client: httpx.AsyncClient | None,
        source: ContentSource,
        timeout_seconds: float,
        user_agent: str,
        max_concurrent: int,
    ) -> FetchResult:
        """Run one fetch cycle and return its result."""
        ...


class DefaultContentService:
    """Default adapter that delegates to the function-based content service."""

    async def fetch_documents(
        self,
        *,
        client: httpx.AsyncClient | None,
        source: ContentSource,
        timeout_seconds: float,
        user_agent: str,
        max_concurrent: int,
    ) -> FetchResult:
        return await _content.fetch_documents(
            client=client,
            source=source,
            timeout_seconds=timeout_seconds,
            user_agent=user_agent,
            max_concurrent=max_concurrent,
        )


@dataclass(slots=True)
class AppServices:
    """Aggregated service interfaces consumed by the app layer."""

    content: ContentService


def build_default_app_services() -> AppServices:
    """Build default app services backed by existing function-based modules."""
    return AppServices(content=DefaultContentService())


__all__ = [
    "AppServices",
    "ContentService",
    "DefaultContentService",
    "build_default_app_services",
]

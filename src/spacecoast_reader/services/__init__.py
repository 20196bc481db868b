"""Service layer: remote content fetching behind an injectable interface."""

from spacecoast_reader.services.content_service import (
    download_document,
    fetch_documents,
    list_entries,
)

__all__ = [
    "download_document",
    "fetch_documents",
    "list_entries",
]

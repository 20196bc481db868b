"""Widget classes for the reader screens."""

from spacecoast_reader.widgets.chrome import ContextFooter
from spacecoast_reader.widgets.listing import SUMMARY_PREVIEW_MAX_LEN, render_entry_option
from spacecoast_reader.widgets.viewport import DocumentViewport

__all__ = [
    "SUMMARY_PREVIEW_MAX_LEN",
    "ContextFooter",
    "DocumentViewport",
    "render_entry_option",
]

"""Screen state machine for the reader.

The machine is a plain object driven one event at a time by the host event
loop. It never performs I/O: anything that has to happen outside of it
(starting a fetch, driving the blink timer, moving a widget cursor) is
returned as an effect value for the host to carry out. Fetch results come
back in through ``fetch_completed``.

Screens form a small sum type::

    Splash  ->  Listing  ->  Detail
    Splash  <-  Listing  <-  Detail
    Splash/Listing  ->  Exited

``Detail`` always holds the document it shows, so there is no way to be in
the detail screen without one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from spacecoast_reader.errors import ContentError
from spacecoast_reader.models import DocumentMetadata, FetchResult
from spacecoast_reader.render import RenderedDocument, content_width

logger = logging.getLogger(__name__)

DEFAULT_GEOMETRY = (80, 24)


class Key(str, Enum):
    """Input vocabulary understood by the state machine."""

    CONFIRM = "confirm"
    BACK = "back"
    QUIT = "quit"
    UP = "up"
    DOWN = "down"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    TOP = "top"
    BOTTOM = "bottom"
    FILTER = "filter"


# ── States ────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Splash:
    show_prompt: bool = True


@dataclass(frozen=True, slots=True)
class Listing:
    entries: tuple[DocumentMetadata, ...] = ()
    error: ContentError | None = None
    loading: bool = False
    filtering: bool = False
    skipped: int = 0


@dataclass(frozen=True, slots=True)
class Detail:
    document: DocumentMetadata
    rendered: RenderedDocument
    listing: Listing = field(default_factory=Listing)


@dataclass(frozen=True, slots=True)
class Exited:
    pass


ScreenState = Splash | Listing | Detail | Exited


# ── Effects ───────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class StartFetch:
    generation: int


@dataclass(frozen=True, slots=True)
class StartBlink:
    pass


@dataclass(frozen=True, slots=True)
class StopBlink:
    pass


@dataclass(frozen=True, slots=True)
class ForwardToList:
    key: Key


@dataclass(frozen=True, slots=True)
class ForwardToViewport:
    key: Key


@dataclass(frozen=True, slots=True)
class Quit:
    pass


Effect = StartFetch | StartBlink | StopBlink | ForwardToList | ForwardToViewport | Quit

RenderFn = Callable[[str | None, int], RenderedDocument]

_LIST_NAVIGATION_KEYS = frozenset(
    {Key.UP, Key.DOWN, Key.PAGE_UP, Key.PAGE_DOWN, Key.TOP, Key.BOTTOM, Key.FILTER}
)


class ScreenStateMachine:
    """Owns the current screen and applies transitions for input and async events."""

    def __init__(self, render: RenderFn, *, open_latest: bool = False) -> None:
        self._render = render
        self._open_latest = open_latest
        self._opened_latest = False
        self._state: ScreenState = Splash()
        self._generation = 0
        self.width, self.height = DEFAULT_GEOMETRY

    @property
    def state(self) -> ScreenState:
        return self._state

    @property
    def fetch_generation(self) -> int:
        """Number of fetches issued so far."""
        return self._generation

    def start(self) -> list[Effect]:
        """Initial effects for a freshly mounted host."""
        return [StartBlink()]

    # ── Input ─────────────────────────────────────────────────────────────

    def handle_key(
        self, key: Key, highlighted: DocumentMetadata | None = None
    ) -> list[Effect]:
        """Apply one input key; *highlighted* is the list entry under the cursor."""
        state = self._state
        if isinstance(state, Splash):
            return self._splash_key(key)
        if isinstance(state, Listing):
            return self._listing_key(state, key, highlighted)
        if isinstance(state, Detail):
            return self._detail_key(state, key)
        return []

    def _splash_key(self, key: Key) -> list[Effect]:
        if key is Key.CONFIRM:
            return self._enter_listing()
        if key is Key.QUIT:
            return self._exit()
        return []

    def _listing_key(
        self, state: Listing, key: Key, highlighted: DocumentMetadata | None
    ) -> list[Effect]:
        if state.filtering:
            return [ForwardToList(key)]
        if key is Key.QUIT:
            return self._exit()
        if key is Key.BACK:
            logger.debug("Listing -> Splash")
            self._state = Splash()
            return [StartBlink()]
        if key is Key.CONFIRM:
            if highlighted is None:
                return []
            self._open_detail(state, highlighted)
            return []
        if key in _LIST_NAVIGATION_KEYS:
            return [ForwardToList(key)]
        return []

    def _detail_key(self, state: Detail, key: Key) -> list[Effect]:
        if key in (Key.QUIT, Key.BACK):
            logger.debug("Detail -> Listing (%s)", state.document.slug)
            self._state = replace(state.listing, filtering=False)
            return []
        return [ForwardToViewport(key)]

    def set_filtering(self, active: bool) -> None:
        """Record whether the list widget's filter sub-mode is open."""
        if isinstance(self._state, Listing) and self._state.filtering != active:
            self._state = replace(self._state, filtering=active)

    # ── Timer / async / geometry ──────────────────────────────────────────

    def tick(self) -> None:
        """Blink timer tick; only toggles what the splash screen draws."""
        if isinstance(self._state, Splash):
            self._state = Splash(show_prompt=not self._state.show_prompt)

    def fetch_completed(self, generation: int, result: FetchResult) -> list[Effect]:
        """Apply a fetch result to the live listing.

        Results from older fetches are not discarded: replacing the list
        wholesale is idempotent, so whichever completion arrives last wins.
        """
        state = self._state
        if generation != self._generation:
            logger.debug(
                "Applying result of fetch %d while fetch %d is current",
                generation,
                self._generation,
            )
        if isinstance(state, Listing):
            listing = _apply_result(state, result)
            self._state = listing
            if self._should_open_latest(listing):
                self._opened_latest = True
                self._open_detail(listing, listing.entries[0])
            return []
        if isinstance(state, Detail):
            self._state = replace(state, listing=_apply_result(state.listing, result))
            return []
        logger.debug("Dropping result of fetch %d outside the listing", generation)
        return []

    def _should_open_latest(self, listing: Listing) -> bool:
        return (
            self._open_latest
            and not self._opened_latest
            and listing.error is None
            and bool(listing.entries)
        )

    def resize(self, width: int, height: int) -> None:
        """Record new terminal geometry and re-wrap an open document."""
        self.width, self.height = width, height
        state = self._state
        if isinstance(state, Detail):
            self._state = replace(state, rendered=self._render_for(state.document))

    # ── Transitions ───────────────────────────────────────────────────────

    def _enter_listing(self) -> list[Effect]:
        self._generation += 1
        logger.debug("Splash -> Listing (fetch %d)", self._generation)
        self._state = Listing(loading=True)
        return [StopBlink(), StartFetch(self._generation)]

    def _open_detail(self, listing: Listing, document: DocumentMetadata) -> None:
        logger.debug("Listing -> Detail (%s)", document.slug)
        rendered = self._render_for(document)
        self._state = Detail(
            document=document,
            rendered=rendered,
            listing=replace(listing, filtering=False),
        )

    def _render_for(self, document: DocumentMetadata) -> RenderedDocument:
        return self._render(document.body, content_width(self.width))

    def _exit(self) -> list[Effect]:
        self._state = Exited()
        return [StopBlink(), Quit()]


def _apply_result(listing: Listing, result: FetchResult) -> Listing:
    if result.ok:
        return replace(
            listing,
            entries=result.documents,
            error=None,
            loading=False,
            skipped=result.skipped,
        )
    return replace(listing, entries=(), error=result.error, loading=False, skipped=result.skipped)


__all__ = [
    "DEFAULT_GEOMETRY",
    "Detail",
    "Effect",
    "Exited",
    "ForwardToList",
    "ForwardToViewport",
    "Key",
    "Listing",
    "Quit",
    "ScreenState",
    "ScreenStateMachine",
    "Splash",
    "StartBlink",
    "StartFetch",
    "StopBlink",
]

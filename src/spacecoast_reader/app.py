"""Space Coast Devs reader TUI.

Browse the Space Coast Devs blog from a terminal.

Usage:
    spacecoast-reader              # Run in the local terminal
    spacecoast-reader --latest     # Open the newest post directly
    spacecoast-reader ssh          # Serve the reader over SSH

Key bindings:
    Enter     - Continue / open the highlighted post
    /         - Filter posts (Esc clears, Enter keeps the filter)
    j/k       - Move down/up (list) or scroll (post)
    b/f       - Page up/down
    g/G       - Jump to top/bottom
    Esc       - Go back one screen
    q         - Quit (from a post: back to the list)
"""

from __future__ import annotations

import asyncio
import logging
import sys
from functools import partial
from typing import Any

import httpx
from textual import on
from textual.app import App
from textual.events import Resize
from textual.message import Message
from textual.timer import Timer
from textual.widgets import OptionList

from spacecoast_reader.action_messages import build_actionable_warning
from spacecoast_reader.cli import main as _cli_main
from spacecoast_reader.errors import ListError
from spacecoast_reader.models import FetchResult, UserConfig
from spacecoast_reader.render import render_document
from spacecoast_reader.screens import DetailScreen, ListingScreen, SplashScreen
from spacecoast_reader.services.interfaces import AppServices, build_default_app_services
from spacecoast_reader.state import (
    Detail,
    Effect,
    Exited,
    ForwardToList,
    ForwardToViewport,
    Key,
    Listing,
    Quit,
    ScreenStateMachine,
    Splash,
    StartBlink,
    StartFetch,
    StopBlink,
)
from spacecoast_reader.themes import TEXTUAL_THEMES, THEME_NAMES, apply_theme_colors
from spacecoast_reader.ui_constants import APP_BINDINGS, APP_CSS

logger = logging.getLogger(__name__)

SCREEN_NAMES: dict[type, str] = {
    Splash: "splash",
    Listing: "listing",
    Detail: "detail",
}


class ContentBrowser(App):
    """Screen-based reader for remote markdown posts."""

    TITLE = "Space Coast Devs"

    CSS = APP_CSS

    BINDINGS = APP_BINDINGS

    SCREENS = {
        "splash": SplashScreen,
        "listing": ListingScreen,
        "detail": DetailScreen,
    }

    class FetchCompleted(Message):
        """Posted exactly once per fetch, carrying its result back to the UI."""

        def __init__(self, generation: int, result: FetchResult) -> None:
            super().__init__()
            self.generation = generation
            self.result = result

    def __init__(
        self,
        config: UserConfig | None = None,
        *,
        open_latest: bool = False,
        services: AppServices | None = None,
    ) -> None:
        super().__init__()
        # Register all Textual themes so $th-* CSS variables resolve before compose()
        for textual_theme in TEXTUAL_THEMES.values():
            self.register_theme(textual_theme)
        self._config = config or UserConfig()
        self._services: AppServices = services or build_default_app_services()
        self._machine = ScreenStateMachine(
            partial(render_document, code_theme=self._config.code_theme),
            open_latest=open_latest,
        )
        self._blink_timer: Timer | None = None
        self._background_tasks: set[asyncio.Task[None]] = set()
        self._http_client: httpx.AsyncClient | None = None
        self._screens_ready = False
        theme_name = self._config.theme_name if self._config.theme_name in THEME_NAMES else None
        apply_theme_colors(theme_name or THEME_NAMES[0])
        self.theme = theme_name or THEME_NAMES[0]

    @property
    def machine(self) -> ScreenStateMachine:
        return self._machine

    def on_mount(self) -> None:
        """Create the shared HTTP client and show the splash screen."""
        self._http_client = httpx.AsyncClient()

        if self._config.config_defaulted:
            self.notify(
                build_actionable_warning(
                    "Config file could not be read",
                    next_step="run with --init-config to write a fresh config",
                    why="defaults are in use for this session",
                ),
                severity="warning",
                timeout=8,
            )

        self._machine.resize(self.size.width, self.size.height)
        self.push_screen("splash")
        self._screens_ready = True
        self._apply_effects(self._machine.start())
        logger.debug(
            "App mounted: source=%s, size=%dx%d",
            self._config.content_source().listing_url,
            self.size.width,
            self.size.height,
        )

    async def on_unmount(self) -> None:
        """Stop the blink timer, cancel fetches, and close the HTTP client."""
        timer = self._blink_timer
        self._blink_timer = None
        if timer is not None:
            timer.stop()

        pending = [task for task in self._background_tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            _, still_pending = await asyncio.wait(pending, timeout=0.5)
            for task in still_pending:
                logger.debug("Background task did not cancel before shutdown: %r", task)
        self._background_tasks.clear()

        client = self._http_client
        self._http_client = None
        if client is not None:
            try:
                await client.aclose()
            except Exception as e:
                logger.debug(
                    "Failed to close shared HTTP client during shutdown: %s", e, exc_info=True
                )

    # ── Input ─────────────────────────────────────────────────────────────

    def action_key(self, name: str) -> None:
        """Feed one bound key into the state machine."""
        key = Key(name)
        highlighted = None
        if isinstance(self._machine.state, Listing):
            highlighted = self._listing_screen().highlighted_document()
        self._apply_effects(self._machine.handle_key(key, highlighted))

    @on(OptionList.OptionSelected, "#entry-list")
    def on_entry_selected(self, event: OptionList.OptionSelected) -> None:
        document = self._listing_screen().document_at(event.option_index)
        self._apply_effects(self._machine.handle_key(Key.CONFIRM, document))

    def on_listing_screen_filter_toggled(self, event: ListingScreen.FilterToggled) -> None:
        self._machine.set_filtering(event.active)

    def on_resize(self, event: Resize) -> None:
        self._machine.resize(event.size.width, event.size.height)
        # The first resize arrives before on_mount has pushed the splash screen
        if self._screens_ready:
            self._sync_screen()

    # ── Async fetch ───────────────────────────────────────────────────────

    def _track_task(self, coro: Any) -> asyncio.Task[None]:
        """Create an asyncio task and track it to prevent garbage collection."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(self._on_task_done)
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        """Log unhandled exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in background task: %s", exc, exc_info=exc)

    async def _run_fetch(self, generation: int) -> None:
        config = self._config
        try:
            result = await self._services.content.fetch_documents(
                client=self._http_client,
                source=config.content_source(),
                timeout_seconds=config.request_timeout,
                user_agent=config.user_agent,
                max_concurrent=config.max_concurrent_downloads,
            )
        except Exception as exc:
            logger.exception("Fetch %d raised instead of returning a result", generation)
            result = FetchResult.failure(ListError(f"unexpected fetch failure: {exc}"))
        self.post_message(self.FetchCompleted(generation, result))

    def on_content_browser_fetch_completed(self, event: ContentBrowser.FetchCompleted) -> None:
        logger.debug(
            "Fetch %d completed: %d documents, error=%s",
            event.generation,
            len(event.result.documents),
            event.result.error,
        )
        self._apply_effects(self._machine.fetch_completed(event.generation, event.result))

    # ── Blink timer ───────────────────────────────────────────────────────

    def _start_blink(self) -> None:
        if self._blink_timer is None:
            self._blink_timer = self.set_interval(self._config.blink_interval, self._on_blink)

    def _stop_blink(self) -> None:
        timer = self._blink_timer
        self._blink_timer = None
        if timer is not None:
            timer.stop()

    def _on_blink(self) -> None:
        self._machine.tick()
        self._sync_screen()

    # ── Effects and screen sync ───────────────────────────────────────────

    def _listing_screen(self) -> ListingScreen:
        return self.get_screen("listing", ListingScreen)

    def _detail_screen(self) -> DetailScreen:
        return self.get_screen("detail", DetailScreen)

    def _apply_effects(self, effects: list[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, StartFetch):
                self._track_task(self._run_fetch(effect.generation))
            elif isinstance(effect, StartBlink):
                self._start_blink()
            elif isinstance(effect, StopBlink):
                self._stop_blink()
            elif isinstance(effect, ForwardToList):
                screen = self._listing_screen()
                screen.handle_forwarded_key(effect.key)
                self._machine.set_filtering(screen.filter_active)
            elif isinstance(effect, ForwardToViewport):
                self._detail_screen().handle_forwarded_key(effect.key)
            elif isinstance(effect, Quit):
                self.exit()
                return
        self._sync_screen()

    def _sync_screen(self) -> None:
        """Show the screen matching the machine state and hand it that state."""
        state = self._machine.state
        if isinstance(state, Exited):
            return
        name = SCREEN_NAMES[type(state)]
        screen = self.get_screen(name)
        if self.screen is not screen:
            logger.debug("Switching to %s screen", name)
            self.switch_screen(name)
        if isinstance(state, Splash):
            self.get_screen("splash", SplashScreen).show(state)
        elif isinstance(state, Listing):
            self._listing_screen().show(state)
        if isinstance(state, Detail):
            self._listing_screen().show(state.listing)
            self._detail_screen().show(state)
        else:
            self._detail_screen().show(None)


def main() -> int:
    """Main entry point wrapper for CLI/bootstrap logic."""
    return _cli_main(app_factory=ContentBrowser)


if __name__ == "__main__":
    sys.exit(main())

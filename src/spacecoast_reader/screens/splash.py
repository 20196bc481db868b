"""Splash screen with a blinking continue prompt."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Center, Middle
from textual.screen import Screen
from textual.widgets import Label

from spacecoast_reader.state import Splash
from spacecoast_reader.ui_constants import SPLASH_FOOTER_HINTS
from spacecoast_reader.widgets import ContextFooter

WELCOME_MESSAGE = "Welcome to Space Coast Devs"
CONTINUE_PROMPT = "<Press Enter to Continue>"


class SplashScreen(Screen[None]):
    """Landing screen; only draws what the Splash state says."""

    def __init__(self) -> None:
        super().__init__()
        self._splash = Splash()

    def compose(self) -> ComposeResult:
        with Middle(id="splash-container"):
            with Center():
                yield Label(WELCOME_MESSAGE, id="splash-message")
            with Center():
                yield Label(CONTINUE_PROMPT, id="splash-prompt")
        yield ContextFooter()

    def on_mount(self) -> None:
        self.query_one(ContextFooter).render_bindings(SPLASH_FOOTER_HINTS)
        self._apply()

    def show(self, splash: Splash) -> None:
        self._splash = splash
        if self.is_mounted:
            self._apply()

    def _apply(self) -> None:
        # Keep the label's space so the layout does not jump while blinking.
        prompt = self.query_one("#splash-prompt", Label)
        prompt.update(CONTINUE_PROMPT if self._splash.show_prompt else "")


__all__ = [
    "CONTINUE_PROMPT",
    "WELCOME_MESSAGE",
    "SplashScreen",
]

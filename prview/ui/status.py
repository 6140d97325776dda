from __future__ import annotations

from rich.text import Text
from textual.widgets import Static

from ..controller import Controller, ViewState
from .palette import Palette

LIST_KEYS = "↑/↓ navigate • / filter • i details • d diff • o open • q quit"
DETAIL_KEYS = "↑/↓ scroll • pgup/pgdn page • h back • q quit"
ERROR_KEYS = "h back • q quit"


class StatusBar(Static):
    """One-line status bar: process errors, loading progress and key hints."""

    def __init__(self, palette: Palette) -> None:
        super().__init__(id="status")
        self.palette = palette

    def status_text(self, controller: Controller) -> Text:
        """Pick the status line for the controller's current state.

        A pending notice (a failed diff or browser handoff) wins over
        everything else.
        """
        if controller.notice:
            return Text(controller.notice, style=self.palette.notice)
        state = controller.state
        if state is ViewState.LIST_LOADING:
            return Text(f"Loading pull requests for {controller.repo.full_name}…", style=self.palette.dim)
        if state is ViewState.DETAIL_LOADING:
            return Text(f"Loading #{controller.loading_number}…", style=self.palette.dim)
        if state is ViewState.DETAIL_READY:
            return Text(DETAIL_KEYS, style=self.palette.dim)
        if state is ViewState.ERROR:
            keys = ERROR_KEYS if controller.list_loaded else "q quit"
            return Text(keys, style=self.palette.dim)
        return Text(LIST_KEYS, style=self.palette.dim)

    def show(self, controller: Controller) -> None:
        self.update(self.status_text(controller))

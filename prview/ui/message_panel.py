from __future__ import annotations

from rich.text import Text
from textual.widgets import Static

from ..controller import Controller, ViewState
from .palette import Palette


class MessagePanel(Static):
    """Full-screen text shown while the list loads or after a failed fetch."""

    def __init__(self, palette: Palette) -> None:
        super().__init__(id="message")
        self.palette = palette

    def message_text(self, controller: Controller) -> Text:
        if controller.state is ViewState.ERROR and controller.error is not None:
            text = Text("Error: ", style=self.palette.error)
            text.append(controller.error.message)
            return text
        return Text("Loading...", style=self.palette.dim)

    def show(self, controller: Controller) -> None:
        self.update(self.message_text(controller))

from __future__ import annotations

from datetime import datetime

from rich.text import Text
from textual.widgets import Static

from ..list_browser import ListBrowser, describe
from .palette import Palette

CURSOR_MARK = "│ "
BLANK_MARK = "  "


def fit(text: str, width: int) -> str:
    """Truncate `text` to `width` cells with an ellipsis (no-op for width 0)."""
    if width <= 0 or len(text) <= width:
        return text
    return text[: max(0, width - 1)] + "…"


class PRList(Static):
    """Widget that renders the pull request list held by a `ListBrowser`."""

    def __init__(self, browser: ListBrowser, palette: Palette, heading: str) -> None:
        super().__init__(id="pr-list")
        self.browser = browser
        self.palette = palette
        self.heading = heading

    def _status_line(self) -> str:
        count = len(self.browser.visible)
        if self.browser.is_filtering:
            return f"Filter: {self.browser.query}█"
        if self.browser.filter_applied:
            return f"“{self.browser.query}” {count} of {len(self.browser.items)} items • esc to clear"
        return f"{count} item" if count == 1 else f"{count} items"

    def render_text(self, now: datetime | None = None) -> Text:
        """Build the list as rich text (title, status, rows, page indicator)."""
        width = self.browser.width
        palette = self.palette
        text = Text()
        text.append(fit(f" {self.heading} ", width), style=palette.title)
        text.append("\n")
        text.append(fit(self._status_line(), width), style=palette.dim)
        text.append("\n")

        rows = self.browser.visible_items()
        if not rows:
            empty = "No matching pull requests." if self.browser.query else "No open pull requests."
            text.append(empty, style=palette.dim)
            text.append("\n")
        cursor = self.browser.cursor
        for index, summary in rows:
            is_selected = index == cursor
            mark = CURSOR_MARK if is_selected else BLANK_MARK
            text.append(
                fit(mark + summary.title, width),
                style=palette.selected_title if is_selected else palette.item_title,
            )
            text.append("\n")
            text.append(
                fit(mark + describe(summary, now), width),
                style=palette.selected_desc if is_selected else palette.item_desc,
            )
            text.append("\n\n")

        # Key hints live in the status bar
        pages = self.browser.total_pages
        if pages > 1:
            text.append(f"page {self.browser.page + 1}/{pages}", style=palette.dim)
        return text

    def refresh_view(self) -> None:
        self.update(self.render_text())

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from .github import PullRequestSummary
from .utils.time import format_created_at

# Each row is a title line, a description line and a spacing line
ROW_HEIGHT = 3
# Title, filter/status line and the page indicator around the rows
LIST_CHROME_LINES = 3

UP_KEYS = {"up", "k"}
DOWN_KEYS = {"down", "j"}
PREV_PAGE_KEYS = {"pageup", "left", "b"}
NEXT_PAGE_KEYS = {"pagedown", "right", "l", "f"}
FIRST_KEYS = {"home", "g"}
LAST_KEYS = {"end", "G", "shift+g"}
FILTER_KEY = "/"


def describe(summary: PullRequestSummary, now: datetime | None = None) -> str:
    """Return the description line shown under a pull request title."""
    return f"#{summary.number} opened {format_created_at(summary.created_at, now)} by {summary.author}"


class ListBrowser:
    """Selectable, filterable list of pull request summaries.

    Holds only view-local state: the collection, the filter query and the
    cursor. The cursor indexes the filtered collection and is None when it
    is empty.
    """

    def __init__(self) -> None:
        self._items: list[PullRequestSummary] = []
        self._visible: list[PullRequestSummary] = []
        self._cursor: int | None = None
        self._query = ""
        self._filtering = False
        self._width = 0
        self._height = 0
        self._per_page = 1

    # ---------------- Collection ----------------

    @property
    def items(self) -> list[PullRequestSummary]:
        """The full, unfiltered collection."""
        return list(self._items)

    @property
    def visible(self) -> list[PullRequestSummary]:
        """The displayed (filtered) collection."""
        return list(self._visible)

    @property
    def cursor(self) -> int | None:
        return self._cursor

    def set_items(self, summaries: Iterable[PullRequestSummary]) -> None:
        """Replace the whole collection and re-apply the current filter.

        The cursor is kept when still in range, otherwise it moves to the
        first item.
        """
        self._items = list(summaries)
        self._apply_filter()

    def selected(self) -> PullRequestSummary | None:
        """Return the summary under the cursor, or None when nothing is displayed."""
        if self._cursor is None:
            return None
        return self._visible[self._cursor]

    # ---------------- Filtering ----------------

    @property
    def query(self) -> str:
        return self._query

    @property
    def is_filtering(self) -> bool:
        """True while the filter query is being edited."""
        return self._filtering

    @property
    def filter_applied(self) -> bool:
        return bool(self._query) and not self._filtering

    def start_filter(self) -> None:
        self._filtering = True

    def set_filter(self, query: str) -> None:
        self._query = query
        self._apply_filter()

    def clear_filter(self) -> None:
        self._filtering = False
        self.set_filter("")

    def _apply_filter(self) -> None:
        needle = self._query.casefold()
        if needle:
            self._visible = [s for s in self._items if needle in s.title.casefold()]
        else:
            self._visible = list(self._items)
        if not self._visible:
            self._cursor = None
        elif self._cursor is None or self._cursor >= len(self._visible):
            self._cursor = 0

    def _handle_filter_key(self, key: str, character: str | None) -> bool:
        if key == "escape":
            self.clear_filter()
        elif key == "enter":
            self._filtering = False
            if not self._query:
                self.clear_filter()
        elif key == "backspace":
            self.set_filter(self._query[:-1])
        elif character and len(character) == 1 and character.isprintable():
            self.set_filter(self._query + character)
        else:
            return False
        return True

    # ---------------- Geometry ----------------

    def set_size(self, width: int, height: int) -> None:
        """Recompute how many rows fit in the given area."""
        self._width = max(0, width)
        self._height = max(0, height)
        self._per_page = max(1, (self._height - LIST_CHROME_LINES) // ROW_HEIGHT)

    @property
    def width(self) -> int:
        return self._width

    @property
    def per_page(self) -> int:
        return self._per_page

    @property
    def page(self) -> int:
        """Zero-based page holding the cursor."""
        if self._cursor is None:
            return 0
        return self._cursor // self._per_page

    @property
    def total_pages(self) -> int:
        return max(1, (len(self._visible) + self._per_page - 1) // self._per_page)

    def visible_items(self) -> list[tuple[int, PullRequestSummary]]:
        """Return (index, summary) pairs on the cursor's page."""
        start = self.page * self._per_page
        end = start + self._per_page
        return list(enumerate(self._visible))[start:end]

    # ---------------- Keys ----------------

    def handle_key(self, key: str, character: str | None = None) -> bool:
        """Apply a navigation or filter key.

        Args:
            key: Key name (e.g. "down", "pagedown", "/").
            character: Printable character for the key, if any.

        Returns:
            True if the key was consumed.
        """
        if self._filtering:
            return self._handle_filter_key(key, character)
        if key == FILTER_KEY or character == FILTER_KEY:
            self.start_filter()
            return True
        if key == "escape" and self.filter_applied:
            self.clear_filter()
            return True
        if self._cursor is None:
            return False
        count = len(self._visible)
        if key in UP_KEYS:
            self._cursor = self._maybe_wrap_index(count, self._cursor, "up")
        elif key in DOWN_KEYS:
            self._cursor = self._maybe_wrap_index(count, self._cursor, "down")
        elif key in PREV_PAGE_KEYS:
            self._cursor = max(0, self._cursor - self._per_page)
        elif key in NEXT_PAGE_KEYS:
            self._cursor = min(count - 1, self._cursor + self._per_page)
        elif key in FIRST_KEYS:
            self._cursor = 0
        elif key in LAST_KEYS:
            self._cursor = count - 1
        else:
            return False
        return True

    @staticmethod
    def _maybe_wrap_index(count: int, idx: int, direction: str) -> int:
        """Move one step, wrapping at the boundaries.

        Args:
            count: Number of items.
            idx: Current index.
            direction: 'up' or 'down'.

        Returns:
            The new index.
        """
        if direction == "up":
            return count - 1 if idx == 0 else idx - 1
        return 0 if idx == count - 1 else idx + 1

from __future__ import annotations

import enum
import logging
from typing import assert_never

from .detail_viewer import DetailViewer, build_detail_content
from .errors import GatewayError
from .github import PullRequestDetail, RepoIdentity
from .list_browser import ListBrowser
from .messages import (
    Command,
    DetailFailed,
    DetailLoaded,
    FetchDetail,
    FetchList,
    KeyPressed,
    ListFailed,
    ListLoaded,
    Msg,
    OpenInBrowser,
    ProcessExited,
    Quit,
    Resized,
    ShowDiff,
)

logger = logging.getLogger(__name__)

QUIT_KEYS = {"q", "ctrl+c", "escape", "esc"}
FORCE_QUIT_KEY = "ctrl+c"
DIFF_KEY = "d"
DETAIL_KEY = "i"
BROWSER_KEY = "o"
BACK_KEY = "h"

# Header and footer rules around the detail viewport
DETAIL_CHROME_LINES = 2


class ViewState(enum.Enum):
    LIST_LOADING = "list_loading"
    LIST_READY = "list_ready"
    DETAIL_LOADING = "detail_loading"
    DETAIL_READY = "detail_ready"
    ERROR = "error"


# States in which the list is on screen and takes navigation keys
LIST_STATES = {ViewState.LIST_READY, ViewState.DETAIL_LOADING}


class Controller:
    """State machine behind the pull request browser.

    `update` applies one message and returns at most one command for the
    event loop to execute. Every fetch is tagged with a generation number;
    results whose generation is not the one currently awaited are dropped,
    so the most recent request always wins.
    """

    def __init__(self, repo: RepoIdentity, *, file_stats: bool = True) -> None:
        """Initialize the controller.

        Args:
            repo: Repository being browsed.
            file_stats: Fill changed files from per-file stats rather than the
                name-only diff listing.
        """
        self.repo = repo
        self.file_stats = file_stats
        self.state = ViewState.LIST_LOADING
        self.list_browser = ListBrowser()
        self.detail_viewer = DetailViewer()
        self.detail: PullRequestDetail | None = None
        self.error: GatewayError | None = None
        self.notice: str | None = None
        self.loading_number: int | None = None
        self.list_loaded = False
        self._generation = 0
        self._awaited: int | None = None

    @property
    def generation(self) -> int:
        return self._generation

    def _next_generation(self) -> int:
        self._generation += 1
        self._awaited = self._generation
        return self._generation

    def _transition(self, state: ViewState) -> None:
        if state is not self.state:
            logger.debug(f"{self.state.value} -> {state.value}")
        self.state = state

    def _is_current(self, generation: int) -> bool:
        if generation != self._awaited:
            logger.debug(f"Dropping stale result for generation {generation} (awaiting {self._awaited})")
            return False
        self._awaited = None
        return True

    def start(self) -> Command:
        """Enter LIST_LOADING and request the pull request list."""
        self._transition(ViewState.LIST_LOADING)
        return FetchList(self._next_generation())

    def update(self, msg: Msg) -> Command | None:
        """Apply a message and return the command it triggers, if any."""
        if isinstance(msg, KeyPressed):
            return self._on_key(msg)
        elif isinstance(msg, Resized):
            self._on_resize(msg)
            return None
        elif isinstance(msg, ListLoaded):
            if self._is_current(msg.generation):
                self.list_browser.set_items(msg.summaries)
                self.list_loaded = True
                self._transition(ViewState.LIST_READY)
            return None
        elif isinstance(msg, ListFailed):
            if self._is_current(msg.generation):
                self._fail(msg.error)
            return None
        elif isinstance(msg, DetailLoaded):
            if self._is_current(msg.generation) and self.state is ViewState.DETAIL_LOADING:
                self.detail = msg.detail
                self.detail_viewer.set_content(build_detail_content(msg.detail))
                self.loading_number = None
                self._transition(ViewState.DETAIL_READY)
            return None
        elif isinstance(msg, DetailFailed):
            if self._is_current(msg.generation) and self.state is ViewState.DETAIL_LOADING:
                self.loading_number = None
                self._fail(msg.error)
            return None
        elif isinstance(msg, ProcessExited):
            if msg.error is not None:
                logger.warning(f"{msg.action} failed: {msg.error.message}")
                self.notice = str(msg.error)
            return None
        else:
            assert_never(msg)

    def _fail(self, error: GatewayError) -> None:
        self.error = error
        self._transition(ViewState.ERROR)

    def _on_resize(self, msg: Resized) -> None:
        self.list_browser.set_size(msg.width, msg.height)
        self.detail_viewer.set_size(msg.width, max(0, msg.height - DETAIL_CHROME_LINES))

    # ---------------- Keys ----------------

    def _on_key(self, msg: KeyPressed) -> Command | None:
        key = msg.key
        self.notice = None
        if self.state in LIST_STATES and self.list_browser.is_filtering:
            if key == FORCE_QUIT_KEY:
                return Quit()
            self.list_browser.handle_key(key, msg.character)
            return None
        if key == "escape" and self.state in LIST_STATES and self.list_browser.filter_applied:
            self.list_browser.clear_filter()
            return None
        if key in QUIT_KEYS:
            return Quit()
        if self.state is ViewState.LIST_READY:
            return self._on_list_key(msg)
        if self.state is ViewState.DETAIL_LOADING:
            if key == DETAIL_KEY:
                return self._open_detail()
            self.list_browser.handle_key(key, msg.character)
            return None
        if self.state is ViewState.DETAIL_READY:
            if key == BACK_KEY:
                self._back_to_list()
            else:
                self.detail_viewer.handle_key(key)
            return None
        if self.state is ViewState.ERROR and key == BACK_KEY and self.list_loaded:
            self.error = None
            self._transition(ViewState.LIST_READY)
        return None

    def _on_list_key(self, msg: KeyPressed) -> Command | None:
        key = msg.key
        selected = self.list_browser.selected()
        if key == DETAIL_KEY:
            return self._open_detail()
        if key == DIFF_KEY:
            return ShowDiff(selected.number) if selected else None
        if key == BROWSER_KEY:
            return OpenInBrowser(selected.url) if selected else None
        self.list_browser.handle_key(key, msg.character)
        return None

    def _open_detail(self) -> Command | None:
        selected = self.list_browser.selected()
        if selected is None:
            return None
        self.loading_number = selected.number
        self._transition(ViewState.DETAIL_LOADING)
        return FetchDetail(self._next_generation(), selected.number, self.file_stats)

    def _back_to_list(self) -> None:
        self.detail = None
        self.detail_viewer.clear()
        self._transition(ViewState.LIST_READY)

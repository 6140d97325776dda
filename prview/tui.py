from __future__ import annotations

import logging
from typing import ClassVar, assert_never

from textual import events
from textual.app import App, ComposeResult, SuspendNotSupported
from textual.binding import Binding
from textual.containers import Vertical
from textual.message import Message
from textual.widgets import Header

from .config import AppConfig
from .controller import LIST_STATES, Controller, ViewState
from .errors import GatewayError, ProcessError
from .external import diff_argv, open_in_browser, run_diff
from .github import GitHubClient, RepoIdentity
from .messages import (
    BROWSER_ACTION,
    DIFF_ACTION,
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
from .ui import DEFAULT_PALETTE, DetailView, MessagePanel, Palette, PRList, StatusBar

logger = logging.getLogger(__name__)

# Header and status bar lines around the content area
APP_CHROME_LINES = 2
# Left and right padding of the content area
HORIZONTAL_PADDING = 2


class Inbound(Message):
    """Carries a controller message through Textual's message queue."""

    def __init__(self, payload: Msg) -> None:
        self.payload = payload
        super().__init__()


class PRViewApp(App):
    """Textual TUI for browsing the open pull requests of one repository.

    The app owns no view state of its own: key, resize and fetch results
    are turned into controller messages, the commands the controller returns
    are executed, and the widgets are redrawn from the controller.
    """

    TITLE = "prview"

    CSS = """
    #pr-list, #detail, #message { height: 1fr; padding: 0 1; }
    #status { height: 1; padding: 0 1; }
    """

    BINDINGS: ClassVar[list[Binding]] = [
        # Routed through the controller like every other key
        Binding("ctrl+c", "interrupt", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        repo: RepoIdentity,
        client: GitHubClient,
        cfg: AppConfig | None = None,
        palette: Palette = DEFAULT_PALETTE,
    ) -> None:
        """Initialize the app.

        Args:
            repo: Repository to browse.
            client: Gateway used for all remote reads.
            cfg: Runtime settings; defaults to `AppConfig()`.
            palette: Styles handed to the widgets.
        """
        super().__init__()
        self.repo = repo
        self.client = client
        self.cfg = cfg or AppConfig()
        self.controller = Controller(repo, file_stats=self.cfg.file_stats)
        self._list = PRList(self.controller.list_browser, palette, f"Open pull requests in {repo.full_name}")
        self._detail = DetailView(self.controller.detail_viewer, palette)
        self._message = MessagePanel(palette)
        self._status = StatusBar(palette)

    def compose(self) -> ComposeResult:
        """Compose the header, the three content views and the status bar."""
        yield Header(show_clock=False)
        with Vertical():
            yield self._message
            yield self._list
            yield self._detail
        yield self._status

    def on_mount(self) -> None:
        """Size the views and start loading the list."""
        self.sub_title = self.repo.full_name
        self.apply_message(self._resized(self.size.width, self.size.height))
        self._execute(self.controller.start())
        self._refresh_views()

    # ---------------- Message loop ----------------

    def apply_message(self, msg: Msg) -> None:
        """Apply one message to the controller and run the resulting command."""
        command = self.controller.update(msg)
        if command is not None:
            self._execute(command)
        self._refresh_views()

    def on_inbound(self, message: Inbound) -> None:
        self.apply_message(message.payload)

    def on_key(self, event: events.Key) -> None:
        """Forward every key to the controller."""
        event.stop()
        event.prevent_default()
        self.apply_message(KeyPressed(event.key, event.character))

    def on_resize(self, event: events.Resize) -> None:
        self.apply_message(self._resized(event.size.width, event.size.height))

    def action_interrupt(self) -> None:
        self.apply_message(KeyPressed("ctrl+c"))

    @staticmethod
    def _resized(width: int, height: int) -> Resized:
        return Resized(max(0, width - HORIZONTAL_PADDING), max(0, height - APP_CHROME_LINES))

    # ---------------- Commands ----------------

    def _execute(self, command: Command) -> None:
        logger.debug(f"Executing {command}")
        if isinstance(command, FetchList):
            self.run_worker(self._fetch_list(command.generation), group="gateway")
        elif isinstance(command, FetchDetail):
            self.run_worker(self._fetch_detail(command), group="gateway")
        elif isinstance(command, ShowDiff):
            self._show_diff(command.number)
        elif isinstance(command, OpenInBrowser):
            self._open_in_browser(command.url)
        elif isinstance(command, Quit):
            self.exit()
        else:
            assert_never(command)

    async def _fetch_list(self, generation: int) -> None:
        try:
            summaries = await self.client.list_open_pull_requests(self.repo)
        except GatewayError as e:
            self.post_message(Inbound(ListFailed(generation, e)))
            return
        self.post_message(Inbound(ListLoaded(generation, summaries)))

    async def _fetch_detail(self, command: FetchDetail) -> None:
        try:
            detail = await self.client.load_pull_request(self.repo, command.number, file_stats=command.file_stats)
        except GatewayError as e:
            self.post_message(Inbound(DetailFailed(command.generation, e)))
            return
        self.post_message(Inbound(DetailLoaded(command.generation, detail)))

    def _show_diff(self, number: int) -> None:
        """Hand the terminal to the diff viewer until it exits."""
        error: ProcessError | None = None
        try:
            with self.suspend():
                run_diff(diff_argv(self.cfg.diff_command, self.repo, number))
        except ProcessError as e:
            error = e
        except SuspendNotSupported as e:
            error = ProcessError(DIFF_ACTION, f"cannot release the terminal here: {e}")
        self.post_message(Inbound(ProcessExited(DIFF_ACTION, error)))

    def _open_in_browser(self, url: str) -> None:
        error: ProcessError | None = None
        try:
            open_in_browser(url)
        except ProcessError as e:
            error = e
        self.post_message(Inbound(ProcessExited(BROWSER_ACTION, error)))

    # ---------------- Rendering ----------------

    def _refresh_views(self) -> None:
        state = self.controller.state
        self._message.display = state in (ViewState.LIST_LOADING, ViewState.ERROR)
        self._list.display = state in LIST_STATES
        self._detail.display = state is ViewState.DETAIL_READY
        if self._message.display:
            self._message.show(self.controller)
        if self._list.display:
            self._list.refresh_view()
        if self._detail.display:
            self._detail.refresh_view(self.controller.detail)
        self._status.show(self.controller)

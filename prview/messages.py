"""Messages consumed and commands produced by the controller.

Both are closed unions of small frozen dataclasses. The controller switches
over them with an isinstance chain that ends in `assert_never`, so adding a
member without handling it is a type error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .errors import GatewayError, ProcessError
from .github import PullRequestDetail, PullRequestSummary

DIFF_ACTION = "diff"
BROWSER_ACTION = "browser"


@dataclass(frozen=True)
class KeyPressed:
    key: str
    character: str | None = None


@dataclass(frozen=True)
class Resized:
    """Size of the content area (terminal size minus the app's own chrome)."""

    width: int
    height: int


@dataclass(frozen=True)
class ListLoaded:
    generation: int
    summaries: list[PullRequestSummary]


@dataclass(frozen=True)
class ListFailed:
    generation: int
    error: GatewayError


@dataclass(frozen=True)
class DetailLoaded:
    generation: int
    detail: PullRequestDetail


@dataclass(frozen=True)
class DetailFailed:
    generation: int
    error: GatewayError


@dataclass(frozen=True)
class ProcessExited:
    """An external program handed the terminal back (or failed to start)."""

    action: str
    error: ProcessError | None = None


Msg = Union[KeyPressed, Resized, ListLoaded, ListFailed, DetailLoaded, DetailFailed, ProcessExited]


@dataclass(frozen=True)
class FetchList:
    generation: int


@dataclass(frozen=True)
class FetchDetail:
    generation: int
    number: int
    file_stats: bool = True


@dataclass(frozen=True)
class ShowDiff:
    number: int


@dataclass(frozen=True)
class OpenInBrowser:
    url: str


@dataclass(frozen=True)
class Quit:
    pass


Command = Union[FetchList, FetchDetail, ShowDiff, OpenInBrowser, Quit]

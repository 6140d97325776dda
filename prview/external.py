from __future__ import annotations

import logging
import subprocess
import webbrowser
from collections.abc import Sequence

from .errors import ProcessError
from .github import RepoIdentity
from .messages import BROWSER_ACTION, DIFF_ACTION

logger = logging.getLogger(__name__)


def diff_argv(diff_command: Sequence[str], repo: RepoIdentity, number: int) -> list[str]:
    """Build the argument vector showing the diff of pull request `number`."""
    return [*diff_command, str(number), "-R", repo.full_name]


def run_diff(argv: Sequence[str]) -> None:
    """Run the diff viewer in the foreground, inheriting the terminal.

    Raises:
        ProcessError: If the program is missing or exits with a non-zero status.
    """
    logger.info(f"Running {' '.join(argv)}")
    try:
        result = subprocess.run(list(argv), check=False)
    except OSError as e:
        raise ProcessError(DIFF_ACTION, f"could not run {argv[0]}: {e}") from e
    if result.returncode != 0:
        raise ProcessError(DIFF_ACTION, f"{argv[0]} exited with status {result.returncode}")


def open_in_browser(url: str) -> None:
    """Open `url` in the default web browser.

    Raises:
        ProcessError: If no browser could be launched.
    """
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        raise ProcessError(BROWSER_ACTION, str(e)) from e
    if not opened:
        raise ProcessError(BROWSER_ACTION, f"no browser available to open {url}")

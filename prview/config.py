from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass, field

from .github import DEFAULT_PAGE_SIZE, GITHUB_API

logger = logging.getLogger(__name__)

DEFAULT_DIFF_COMMAND = ["gh", "pr", "diff"]
FALSE_VALUES = {"0", "false", "no", "off"}


def resolve_token(environ: Mapping[str, str]) -> str | None:
    """Find a GitHub token.

    Looks at `GH_TOKEN`, then `GITHUB_TOKEN`, then asks the `gh` CLI.

    Returns:
        The token, or None to make unauthenticated requests.
    """
    for name in ("GH_TOKEN", "GITHUB_TOKEN"):
        token = environ.get(name, "").strip()
        if token:
            return token
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            check=True,
            timeout=10,
        )
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError):
        logger.info("No GitHub token found; using unauthenticated requests")
        return None
    return result.stdout.strip() or None


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}")
        return default
    return value if value > 0 else default


@dataclass
class AppConfig:
    """Runtime settings, read from the environment.

    Attributes:
        token: GitHub token, or None for unauthenticated requests.
        api_url: Base URL of the GitHub REST API.
        page_size: Number of open pull requests listed.
        file_stats: Show per-file addition/deletion counts (otherwise only
            the changed paths from the diff are listed).
        diff_command: Command used to show a diff; the pull request number
            and `-R owner/name` are appended.
        log_file: Where to write logs; logging is silent when unset.
        log_level: Level name for the log file.
    """

    token: str | None = None
    api_url: str = GITHUB_API
    page_size: int = DEFAULT_PAGE_SIZE
    file_stats: bool = True
    diff_command: list[str] = field(default_factory=lambda: list(DEFAULT_DIFF_COMMAND))
    log_file: str | None = None
    log_level: str = "INFO"

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> AppConfig:
        """Create an `AppConfig` from environment variables.

        Args:
            environ: Mapping to read from; defaults to `os.environ`.

        Returns:
            A populated `AppConfig` object.
        """
        if environ is None:
            environ = os.environ
        diff_command = shlex.split(environ.get("PRVIEW_DIFF_COMMAND", "")) or list(DEFAULT_DIFF_COMMAND)
        return AppConfig(
            token=resolve_token(environ),
            api_url=environ.get("PRVIEW_API_URL") or GITHUB_API,
            page_size=_int_setting(environ, "PRVIEW_PAGE_SIZE", DEFAULT_PAGE_SIZE),
            file_stats=environ.get("PRVIEW_FILE_STATS", "1").strip().lower() not in FALSE_VALUES,
            diff_command=diff_command,
            log_file=environ.get("PRVIEW_LOG_FILE") or None,
            log_level=(environ.get("PRVIEW_LOG_LEVEL") or "INFO").upper(),
        )

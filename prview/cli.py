from __future__ import annotations

import logging
import os
import sys

from . import __version__
from .config import AppConfig
from .errors import StartupError
from .github import GitHubClient
from .repo import resolve_repository
from .tui import PRViewApp

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(cfg: AppConfig) -> None:
    """Send prview logs to `cfg.log_file`, if one is configured.

    The terminal belongs to the UI, so nothing is logged to stderr.
    """
    if not cfg.log_file:
        return
    handler = logging.FileHandler(cfg.log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger = logging.getLogger("prview")
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, cfg.log_level, logging.INFO))


def parse_repo_flag(args: list[str]) -> str | None:
    """Return the value of `-R/--repo` in `args`, if present.

    Raises:
        StartupError: If the flag has no value or an argument is unknown.
    """
    repo: str | None = None
    it = iter(args)
    for arg in it:
        if arg in ("-R", "--repo"):
            repo = next(it, None)
            if not repo:
                raise StartupError(f"{arg} requires a value (OWNER/NAME)")
        elif arg.startswith("--repo="):
            repo = arg.split("=", 1)[1]
        else:
            raise StartupError(f"unknown argument {arg!r}; see prview --help")
    return repo


def main(argv: list[str] | None = None) -> None:
    """Entry point for the `prview` console script.

    Resolves the repository, then launches the Textual TUI. Exits with
    status 1 if the repository cannot be resolved.

    Args:
        argv: Command-line arguments without the program name; defaults
            to `sys.argv[1:]`.
    """
    args = sys.argv[1:] if argv is None else argv
    if args:
        command = args[0]
        if command in ("--version", "-v"):
            print(f"prview {__version__}")
            return
        elif command in ("--help", "-h"):
            print_help()
            return

    try:
        slug = parse_repo_flag(args) or os.environ.get("PRVIEW_REPO")
        repo = resolve_repository(slug)
    except StartupError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    cfg = AppConfig.from_env()
    configure_logging(cfg)
    client = GitHubClient(cfg.token, api_url=cfg.api_url, page_size=cfg.page_size)
    logger.info(f"Starting prview {__version__} for {repo.full_name}")
    PRViewApp(repo, client, cfg).run()


def print_help() -> None:
    """Print help message for the prview CLI.

    Returns:
        None
    """
    help_text = """prview - browse a repository's open pull requests in the terminal

Usage:
  prview                      Browse the repository of the current directory
  prview -R OWNER/NAME        Browse another repository
  prview --version            Show version information
  prview --help               Show this help message

Keys:
  up/down, j/k                Move the selection
  /                           Filter pull requests by title
  i                           Show pull request details
  d                           Show the diff (gh pr diff)
  o                           Open the pull request in the browser
  h                           Back to the list
  q, esc, ctrl+c              Quit

Environment:
  GH_TOKEN, GITHUB_TOKEN      GitHub token (falls back to `gh auth token`)
  PRVIEW_REPO                 Default repository (OWNER/NAME)
  PRVIEW_API_URL              GitHub API base URL
  PRVIEW_PAGE_SIZE            Number of pull requests listed (default 20)
  PRVIEW_FILE_STATS           Set to 0 to list changed files without +/- counts
  PRVIEW_DIFF_COMMAND         Diff command (default "gh pr diff")
  PRVIEW_LOG_FILE             Write logs to this file
  PRVIEW_LOG_LEVEL            Log level (default INFO)
"""
    print(help_text)

from __future__ import annotations

import json
import logging
import subprocess

from .errors import StartupError
from .github import RepoIdentity

logger = logging.getLogger(__name__)

GH_REPO_VIEW = ["gh", "repo", "view", "--json", "nameWithOwner,name,owner"]


def resolve_repository(slug: str | None = None) -> RepoIdentity:
    """Resolve the repository to browse.

    Args:
        slug: Explicit "owner/name"; when None the repository of the current
            directory is asked from the `gh` CLI.

    Returns:
        The repository identity.

    Raises:
        StartupError: If the repository cannot be determined.
    """
    if slug:
        return RepoIdentity.parse(slug)
    try:
        result = subprocess.run(GH_REPO_VIEW, capture_output=True, text=True, check=True, timeout=30)
    except FileNotFoundError as e:
        raise StartupError("the GitHub CLI (gh) is not installed; pass -R OWNER/NAME instead") from e
    except subprocess.TimeoutExpired as e:
        raise StartupError("timed out asking gh for the current repository") from e
    except subprocess.CalledProcessError as e:
        reason = (e.stderr or "").strip() or f"gh exited with status {e.returncode}"
        raise StartupError(f"could not determine the current repository: {reason}") from e

    try:
        data = json.loads(result.stdout)
        repo = RepoIdentity(
            owner=data["owner"]["login"],
            name=data["name"],
            full_name=data["nameWithOwner"],
        )
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        raise StartupError("unexpected output from gh repo view") from e
    logger.info(f"Browsing {repo.full_name}")
    return repo

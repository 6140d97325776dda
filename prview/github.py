from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

import httpx

from .errors import GatewayError, StartupError

# Set up logging
logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
DEFAULT_PAGE_SIZE = 20
FILES_PAGE_SIZE = 100
REQUEST_TIMEOUT = 20

JSON_MEDIA_TYPE = "application/vnd.github+json"
DIFF_MEDIA_TYPE = "application/vnd.github.diff"

UNAUTHORIZED_STATUS_CODE = 401
FORBIDDEN_STATUS_CODE = 403
NOT_FOUND_STATUS_CODE = 404

DIFF_HEADER_PREFIX = "diff --git "
CO_AUTHOR_TRAILER = "co-authored-by:"

# What a JSON payload of the wrong shape raises while it is parsed
MALFORMED_PAYLOAD_ERRORS = (AttributeError, KeyError, TypeError, ValueError)

# Escapes git uses in quoted paths, besides three-digit octal bytes
GIT_QUOTE_ESCAPES = {"a": 7, "b": 8, "t": 9, "n": 10, "v": 11, "f": 12, "r": 13, '"': 34, "\\": 92}


@dataclass(frozen=True)
class RepoIdentity:
    """The repository being browsed.

    Attributes:
        owner: Owner (user or organisation) login.
        name: Repository name.
        full_name: "owner/name" slug.
    """

    owner: str
    name: str
    full_name: str

    @staticmethod
    def parse(slug: str) -> RepoIdentity:
        """Build an identity from an "owner/name" slug.

        Raises:
            StartupError: If the slug is not of the form "owner/name".
        """
        owner, sep, name = slug.strip().partition("/")
        if not sep or not owner or not name or "/" in name:
            raise StartupError(f"invalid repository {slug!r}, expected OWNER/NAME")
        return RepoIdentity(owner=owner, name=name, full_name=f"{owner}/{name}")


@dataclass(frozen=True)
class PullRequestSummary:
    """List-row representation of an open pull request."""

    number: int
    title: str
    url: str
    author: str
    created_at: datetime
    base_branch: str


@dataclass(frozen=True)
class ReviewRequest:
    reviewer: str


@dataclass(frozen=True)
class CommitAuthor:
    login: str
    name: str


@dataclass(frozen=True)
class Commit:
    headline: str
    body: str
    authors: list[CommitAuthor]
    committed_at: datetime | None


@dataclass(frozen=True)
class ChangedFile:
    path: str
    additions: int = 0
    deletions: int = 0


@dataclass(frozen=True)
class PullRequestDetail:
    """Fully hydrated pull request as shown in the detail view.

    `changed_files` is filled by `GitHubClient.load_pull_request` from a single
    source (file stats or the name-only diff listing).
    """

    number: int
    title: str
    url: str
    body: str
    state: str
    author: str
    base_branch: str
    head_branch: str
    created_at: datetime
    review_requests: list[ReviewRequest] = field(default_factory=list)
    commits: list[Commit] = field(default_factory=list)
    changed_files: list[ChangedFile] = field(default_factory=list)


def parse_timestamp(value: str) -> datetime:
    """Parse a GitHub ISO-8601 timestamp ("2024-01-02T10:00:00Z")."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _login(user: dict[str, Any] | None) -> str:
    # Deleted accounts come back as null
    if not user:
        return "ghost"
    return user.get("login") or "ghost"


def parse_summary(data: dict[str, Any]) -> PullRequestSummary:
    return PullRequestSummary(
        number=int(data["number"]),
        title=data["title"],
        url=data["html_url"],
        author=_login(data.get("user")),
        created_at=parse_timestamp(data["created_at"]),
        base_branch=data["base"]["ref"],
    )


def parse_co_authors(body: str) -> list[str]:
    """Return the names from `Co-authored-by: Name <email>` trailers."""
    names: list[str] = []
    for line in body.splitlines():
        line = line.strip()
        if not line.lower().startswith(CO_AUTHOR_TRAILER):
            continue
        name = line[len(CO_AUTHOR_TRAILER) :].partition("<")[0].strip()
        if name and name not in names:
            names.append(name)
    return names


def parse_commit(data: dict[str, Any]) -> Commit:
    """Build a `Commit`; co-authors from message trailers follow the author."""
    commit = data["commit"]
    headline, _, body = (commit.get("message") or "").partition("\n")
    git_author = commit.get("author") or {}
    account = data.get("author") or {}
    committed = (commit.get("committer") or {}).get("date")
    author = CommitAuthor(login=account.get("login") or "", name=git_author.get("name") or "")
    co_authors = [CommitAuthor(login="", name=n) for n in parse_co_authors(body) if n != author.name]
    return Commit(
        headline=headline.strip(),
        body=body.strip(),
        authors=[author, *co_authors],
        committed_at=parse_timestamp(committed) if committed else None,
    )


def parse_detail(data: dict[str, Any], commits: list[dict[str, Any]]) -> PullRequestDetail:
    reviewers = [ReviewRequest(_login(u)) for u in data.get("requested_reviewers") or []]
    reviewers += [ReviewRequest(t.get("slug") or t["name"]) for t in data.get("requested_teams") or []]
    return PullRequestDetail(
        number=int(data["number"]),
        title=data["title"],
        url=data["html_url"],
        body=data.get("body") or "",
        state=data["state"],
        author=_login(data.get("user")),
        base_branch=data["base"]["ref"],
        head_branch=data["head"]["ref"],
        created_at=parse_timestamp(data["created_at"]),
        review_requests=reviewers,
        commits=[parse_commit(c) for c in commits],
    )


def parse_changed_file(data: dict[str, Any]) -> ChangedFile:
    return ChangedFile(
        path=data["filename"],
        additions=int(data.get("additions", 0)),
        deletions=int(data.get("deletions", 0)),
    )


def unquote_git_path(quoted: str) -> str:
    """Undo git's C-style path quoting (the text between the double quotes).

    Non-ASCII bytes are written as three-digit octal escapes and decoded as
    UTF-8 once collected.
    """
    out = bytearray()
    i = 0
    while i < len(quoted):
        ch = quoted[i]
        if ch != "\\" or i + 1 == len(quoted):
            out += ch.encode("utf-8")
            i += 1
            continue
        nxt = quoted[i + 1]
        octal = quoted[i + 1 : i + 4]
        if len(octal) == 3 and all(c in "01234567" for c in octal):
            out.append(int(octal, 8) & 0xFF)
            i += 4
        elif nxt in GIT_QUOTE_ESCAPES:
            out.append(GIT_QUOTE_ESCAPES[nxt])
            i += 2
        else:
            out += nxt.encode("utf-8")
            i += 2
    return out.decode("utf-8", errors="replace")


def parse_diff_file_names(diff: str) -> list[str]:
    """Return the paths touched by a unified git diff, in diff order.

    The new-side path of each `diff --git a/X b/Y` header is used, so renamed
    files are listed under their new name. Paths git had to quote
    (`"b/caf\\303\\251.txt"`) are unquoted.
    """
    paths: list[str] = []
    seen: set[str] = set()
    for line in diff.splitlines():
        if not line.startswith(DIFF_HEADER_PREFIX):
            continue
        header = line[len(DIFF_HEADER_PREFIX) :]
        if header.endswith('"'):
            _, sep, quoted = header.rpartition(' "b/')
            path = unquote_git_path(quoted[:-1])
        else:
            _, sep, path = header.rpartition(" b/")
        if not sep or not path:
            continue
        if path not in seen:
            seen.add(path)
            paths.append(path)
    return paths


class GitHubClient:
    """Read-only GitHub REST client for the pull request views."""

    def __init__(
        self,
        token: str | None,
        api_url: str = GITHUB_API,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        """Initialize the client.

        Args:
            token: A GitHub token. If provided, it is used for authenticated
                requests; otherwise, unauthenticated requests are made with
                stricter rate limits and no access to private repositories.
            api_url: Base URL of the REST API (GitHub Enterprise hosts differ).
            page_size: Number of open pull requests fetched for the list.
        """
        self._headers = {
            "Accept": JSON_MEDIA_TYPE,
            "User-Agent": "prview",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        self._api_url = api_url.rstrip("/")
        self._page_size = page_size

    def _repo_url(self, repo: RepoIdentity) -> str:
        return f"{self._api_url}/repos/{repo.owner}/{repo.name}"

    async def _request(self, url: str, params: dict[str, Any] | None = None, accept: str = JSON_MEDIA_TYPE) -> Any:
        """Perform a GET request and return the response.

        Args:
            url: Absolute endpoint URL.
            params: Optional query parameters.
            accept: Media type requested from the API.

        Returns:
            The `httpx.Response` with a successful status.

        Raises:
            GatewayError: On HTTP error statuses and network or timeout errors.
        """
        headers = {**self._headers, "Accept": accept}
        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
                r = await client.get(url, headers=headers, params=params)
                r.raise_for_status()
                return r
        except httpx.HTTPStatusError as e:
            status_code = getattr(e.response, "status_code", None)
            logger.error(f"HTTP error {status_code} for URL {url}: {e}")
            if status_code in (UNAUTHORIZED_STATUS_CODE, FORBIDDEN_STATUS_CODE):
                raise GatewayError("auth", f"GitHub refused the request ({status_code}); check your token") from e
            if status_code == NOT_FOUND_STATUS_CODE:
                raise GatewayError("not_found", f"not found: {url}") from e
            raise GatewayError("http", f"GitHub responded with status {status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Network error for URL {url}: {e}")
            raise GatewayError("network", f"network error: {e}") from e

    async def _get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET a JSON endpoint and return the decoded body."""
        r = await self._request(url, params=params)
        try:
            return r.json()
        except ValueError as e:
            logger.error(f"Undecodable JSON from {url}: {e}")
            raise GatewayError("malformed", f"malformed response from {url}") from e

    async def list_open_pull_requests(self, repo: RepoIdentity) -> list[PullRequestSummary]:
        """List open pull requests, newest first.

        Args:
            repo: Repository to query.

        Returns:
            At most `page_size` summaries ordered by creation time, descending.

        Raises:
            GatewayError: If the request fails or the payload is malformed.
        """
        url = f"{self._repo_url(repo)}/pulls"
        params = {"state": "open", "sort": "created", "direction": "desc", "per_page": self._page_size}
        data = await self._get(url, params=params)
        try:
            return [parse_summary(pr) for pr in data]
        except MALFORMED_PAYLOAD_ERRORS as e:
            logger.error(f"Malformed pull request list for {repo.full_name}: {e!r}")
            raise GatewayError("malformed", "malformed pull request list") from e

    async def fetch_pull_request_detail(self, repo: RepoIdentity, number: int) -> PullRequestDetail:
        """Fetch one pull request with its requested reviewers and commits.

        Args:
            repo: Repository to query.
            number: Pull request number.

        Returns:
            A `PullRequestDetail` whose `changed_files` is empty.

        Raises:
            GatewayError: If a request fails or the payload is malformed.
        """
        url = f"{self._repo_url(repo)}/pulls/{number}"
        data, commits = await asyncio.gather(
            self._get(url),
            self._get(f"{url}/commits", params={"per_page": FILES_PAGE_SIZE}),
        )
        try:
            return parse_detail(data, commits)
        except MALFORMED_PAYLOAD_ERRORS as e:
            logger.error(f"Malformed pull request #{number} in {repo.full_name}: {e!r}")
            raise GatewayError("malformed", f"malformed pull request #{number}") from e

    async def fetch_changed_file_paths(self, repo: RepoIdentity, number: int) -> list[str]:
        """List the file paths changed by a pull request (name-only diff).

        Raises:
            GatewayError: If the diff cannot be fetched.
        """
        url = f"{self._repo_url(repo)}/pulls/{number}"
        r = await self._request(url, accept=DIFF_MEDIA_TYPE)
        return parse_diff_file_names(r.text)

    async def fetch_pull_request_file_stats(self, repo: RepoIdentity, number: int) -> list[ChangedFile]:
        """List changed files with their addition and deletion counts.

        Raises:
            GatewayError: If the request fails or the payload is malformed.
        """
        url = f"{self._repo_url(repo)}/pulls/{number}/files"
        data = await self._get(url, params={"per_page": FILES_PAGE_SIZE})
        try:
            return [parse_changed_file(f) for f in data]
        except MALFORMED_PAYLOAD_ERRORS as e:
            logger.error(f"Malformed file list for #{number} in {repo.full_name}: {e!r}")
            raise GatewayError("malformed", f"malformed file list for #{number}") from e

    async def load_pull_request(self, repo: RepoIdentity, number: int, *, file_stats: bool = True) -> PullRequestDetail:
        """Fetch the detail and its changed files from a single source.

        Args:
            repo: Repository to query.
            number: Pull request number.
            file_stats: Use per-file stats when True, the name-only diff
                listing otherwise.

        Returns:
            The detail with `changed_files` populated.

        Raises:
            GatewayError: If any of the requests fails.
        """
        if file_stats:
            detail, files = await asyncio.gather(
                self.fetch_pull_request_detail(repo, number),
                self.fetch_pull_request_file_stats(repo, number),
            )
        else:
            detail, paths = await asyncio.gather(
                self.fetch_pull_request_detail(repo, number),
                self.fetch_changed_file_paths(repo, number),
            )
            files = [ChangedFile(path) for path in paths]
        return replace(detail, changed_files=files)

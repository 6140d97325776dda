from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx
import pytest

import prview.github as gh
from prview.errors import GatewayError, StartupError
from prview.github import ChangedFile, RepoIdentity

REPO = RepoIdentity(owner="o", name="r", full_name="o/r")

MALFORMED_JSON = object()


class FakeResponse:
    def __init__(self, data: Any) -> None:
        self._data = data
        self.text = data if isinstance(data, str) else ""

    def raise_for_status(self) -> None:  # no-op
        return None

    def json(self) -> Any:
        if self._data is MALFORMED_JSON:
            raise ValueError("Expecting value")
        return self._data


class RoutingAsyncClient:
    """Fake `httpx.AsyncClient` answering by URL path (and diff media type)."""

    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.calls: list[tuple[str, dict[str, str], dict[str, Any] | None]] = []

    async def __aenter__(self) -> RoutingAsyncClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[no-untyped-def]
        return None

    async def get(
        self, url: str, headers: dict[str, str] | None = None, params: dict[str, Any] | None = None
    ) -> FakeResponse:
        headers = headers or {}
        self.calls.append((url, headers, params))
        key = url.removeprefix(gh.GITHUB_API)
        if headers.get("Accept") == gh.DIFF_MEDIA_TYPE:
            key = f"diff:{key}"
        if key not in self.routes:
            raise AssertionError(f"Unexpected request {key}")
        value = self.routes[key]
        if isinstance(value, Exception):
            raise value
        return FakeResponse(value)


def pull_json(number: int, title: str, author: str = "alice", created_at: str = "2024-01-02T10:00:00Z"):
    return {
        "number": number,
        "title": title,
        "html_url": f"https://github.com/o/r/pull/{number}",
        "user": {"login": author},
        "created_at": created_at,
        "base": {"ref": "main"},
    }


def detail_json(number: int = 7, body: str | None = "Fixes the thing") -> dict[str, Any]:
    data = pull_json(number, "Fix the thing")
    data.update(
        {
            "body": body,
            "state": "open",
            "head": {"ref": "fix-thing"},
            "requested_reviewers": [{"login": "bob"}, {"login": "carol"}],
            "requested_teams": [{"name": "Core", "slug": "core"}],
        }
    )
    return data


COMMITS = [
    {
        "commit": {
            "message": "Fix the thing\n\nLonger explanation",
            "author": {"name": "Alice A"},
            "committer": {"date": "2024-01-03T08:00:00Z"},
        },
        "author": {"login": "alice"},
    },
    {
        "commit": {"message": "Tidy up", "author": {"name": "Dave D"}, "committer": {"date": None}},
        "author": None,
    },
]

FILES = [
    {"filename": "src/a.py", "additions": 3, "deletions": 0},
    {"filename": "src/b.py", "additions": 0, "deletions": 2},
]

DIFF = """diff --git a/src/a.py b/src/a.py
index 1111111..2222222 100644
--- a/src/a.py
+++ b/src/a.py
@@ -1 +1,2 @@
+print("diff --git a/fake b/fake")
diff --git a/old.py b/new.py
similarity index 100%
rename from old.py
rename to new.py
"""


def patch_client(monkeypatch: pytest.MonkeyPatch, fake: RoutingAsyncClient) -> None:
    monkeypatch.setattr(gh.httpx, "AsyncClient", lambda timeout: fake)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_list_open_pull_requests_parses_summaries(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = RoutingAsyncClient({"/repos/o/r/pulls": [pull_json(2, "Newer", "carol"), pull_json(1, "Older")]})
    patch_client(monkeypatch, fake)

    client = gh.GitHubClient(token="tok", page_size=20)
    prs = await client.list_open_pull_requests(REPO)

    assert [p.number for p in prs] == [2, 1]
    assert prs[0].title == "Newer"
    assert prs[0].author == "carol"
    assert prs[0].url == "https://github.com/o/r/pull/2"
    assert prs[0].base_branch == "main"
    assert prs[0].created_at == datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc)

    url, headers, params = fake.calls[0]
    assert url == "https://api.github.com/repos/o/r/pulls"
    assert headers["Authorization"] == "Bearer tok"
    assert params == {"state": "open", "sort": "created", "direction": "desc", "per_page": 20}


@pytest.mark.asyncio
async def test_client_without_token_sends_no_authorization(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = RoutingAsyncClient({"/repos/o/r/pulls": []})
    patch_client(monkeypatch, fake)

    client = gh.GitHubClient(token=None)
    assert await client.list_open_pull_requests(REPO) == []
    assert all("Authorization" not in h for _, h, _ in fake.calls)


@pytest.mark.asyncio
async def test_custom_api_url_is_used(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[str] = []

    class Recorder(RoutingAsyncClient):
        async def get(self, url, headers=None, params=None):  # type: ignore[override]
            seen.append(url)
            return FakeResponse([])

    patch_client(monkeypatch, Recorder({}))
    client = gh.GitHubClient(token=None, api_url="https://ghe.example.com/api/v3/")
    await client.list_open_pull_requests(REPO)
    assert seen == ["https://ghe.example.com/api/v3/repos/o/r/pulls"]


@pytest.mark.asyncio
async def test_fetch_pull_request_detail(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = RoutingAsyncClient({"/repos/o/r/pulls/7": detail_json(), "/repos/o/r/pulls/7/commits": COMMITS})
    patch_client(monkeypatch, fake)

    detail = await gh.GitHubClient(token=None).fetch_pull_request_detail(REPO, 7)

    assert detail.number == 7
    assert detail.body == "Fixes the thing"
    assert detail.head_branch == "fix-thing"
    assert detail.base_branch == "main"
    assert [r.reviewer for r in detail.review_requests] == ["bob", "carol", "core"]
    assert [c.headline for c in detail.commits] == ["Fix the thing", "Tidy up"]
    assert detail.commits[0].body == "Longer explanation"
    assert detail.commits[0].authors[0].login == "alice"
    assert detail.commits[1].authors[0].login == ""
    assert detail.commits[1].authors[0].name == "Dave D"
    assert detail.commits[1].committed_at is None
    assert detail.changed_files == []


@pytest.mark.asyncio
async def test_null_body_becomes_empty_string(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = RoutingAsyncClient({"/repos/o/r/pulls/7": detail_json(body=None), "/repos/o/r/pulls/7/commits": []})
    patch_client(monkeypatch, fake)

    detail = await gh.GitHubClient(token=None).fetch_pull_request_detail(REPO, 7)
    assert detail.body == ""


@pytest.mark.asyncio
async def test_fetch_changed_file_paths_reads_name_only_diff(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = RoutingAsyncClient({"diff:/repos/o/r/pulls/7": DIFF})
    patch_client(monkeypatch, fake)

    paths = await gh.GitHubClient(token=None).fetch_changed_file_paths(REPO, 7)

    assert paths == ["src/a.py", "new.py"]
    assert fake.calls[0][1]["Accept"] == gh.DIFF_MEDIA_TYPE


@pytest.mark.asyncio
async def test_fetch_pull_request_file_stats(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = RoutingAsyncClient({"/repos/o/r/pulls/7/files": FILES})
    patch_client(monkeypatch, fake)

    files = await gh.GitHubClient(token=None).fetch_pull_request_file_stats(REPO, 7)
    assert files == [ChangedFile("src/a.py", 3, 0), ChangedFile("src/b.py", 0, 2)]


@pytest.mark.asyncio
async def test_load_pull_request_uses_one_file_source(monkeypatch: pytest.MonkeyPatch) -> None:
    routes = {
        "/repos/o/r/pulls/7": detail_json(),
        "/repos/o/r/pulls/7/commits": COMMITS,
        "/repos/o/r/pulls/7/files": FILES,
        "diff:/repos/o/r/pulls/7": DIFF,
    }
    fake = RoutingAsyncClient(routes)
    patch_client(monkeypatch, fake)
    client = gh.GitHubClient(token=None)

    with_stats = await client.load_pull_request(REPO, 7)
    assert with_stats.changed_files == [ChangedFile("src/a.py", 3, 0), ChangedFile("src/b.py", 0, 2)]
    assert not any(h.get("Accept") == gh.DIFF_MEDIA_TYPE for _, h, _ in fake.calls)

    fake.calls.clear()
    names_only = await client.load_pull_request(REPO, 7, file_stats=False)
    assert names_only.changed_files == [ChangedFile("src/a.py"), ChangedFile("new.py")]
    assert not any(url.endswith("/files") for url, _, _ in fake.calls)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "kind"),
    [(401, "auth"), (403, "auth"), (404, "not_found"), (500, "http")],
)
async def test_http_errors_become_gateway_errors(monkeypatch: pytest.MonkeyPatch, status: int, kind: str) -> None:
    request = httpx.Request("GET", "https://api.github.com/repos/o/r/pulls")
    error = httpx.HTTPStatusError("boom", request=request, response=httpx.Response(status, request=request))
    patch_client(monkeypatch, RoutingAsyncClient({"/repos/o/r/pulls": error}))

    with pytest.raises(GatewayError) as info:
        await gh.GitHubClient(token="tok").list_open_pull_requests(REPO)
    assert info.value.kind == kind
    assert isinstance(info.value.__cause__, httpx.HTTPStatusError)


@pytest.mark.asyncio
async def test_network_error_is_not_retried(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = RoutingAsyncClient({"/repos/o/r/pulls": httpx.ConnectError("connection refused")})
    patch_client(monkeypatch, fake)

    with pytest.raises(GatewayError) as info:
        await gh.GitHubClient(token=None).list_open_pull_requests(REPO)
    assert info.value.kind == "network"
    assert "connection refused" in info.value.message
    assert len(fake.calls) == 1


@pytest.mark.asyncio
async def test_malformed_payloads(monkeypatch: pytest.MonkeyPatch) -> None:
    patch_client(monkeypatch, RoutingAsyncClient({"/repos/o/r/pulls": [{"number": 1}]}))
    with pytest.raises(GatewayError) as info:
        await gh.GitHubClient(token=None).list_open_pull_requests(REPO)
    assert info.value.kind == "malformed"

    patch_client(monkeypatch, RoutingAsyncClient({"/repos/o/r/pulls/7/files": MALFORMED_JSON}))
    with pytest.raises(GatewayError) as info:
        await gh.GitHubClient(token=None).fetch_pull_request_file_stats(REPO, 7)
    assert info.value.kind == "malformed"


def test_repo_identity_parse() -> None:
    assert RepoIdentity.parse("octo/hello") == RepoIdentity("octo", "hello", "octo/hello")
    for bad in ("", "octo", "octo/", "/hello", "a/b/c"):
        with pytest.raises(StartupError):
            RepoIdentity.parse(bad)


def test_parse_diff_file_names_ignores_other_lines() -> None:
    assert gh.parse_diff_file_names("") == []
    assert gh.parse_diff_file_names("not a diff\n") == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("pull", "commits"),
    [
        (["not", "an", "object"], []),
        ({**detail_json(), "head": "fix-thing"}, []),
        ({**detail_json(), "requested_teams": ["core"]}, []),
        (detail_json(), ["not a commit"]),
        (detail_json(), [{"commit": ["message"], "author": None}]),
    ],
)
async def test_wrongly_shaped_detail_is_malformed(monkeypatch: pytest.MonkeyPatch, pull: Any, commits: Any) -> None:
    patch_client(
        monkeypatch,
        RoutingAsyncClient({"/repos/o/r/pulls/7": pull, "/repos/o/r/pulls/7/commits": commits}),
    )
    with pytest.raises(GatewayError) as info:
        await gh.GitHubClient(token=None).fetch_pull_request_detail(REPO, 7)
    assert info.value.kind == "malformed"


@pytest.mark.asyncio
async def test_wrongly_shaped_lists_are_malformed(monkeypatch: pytest.MonkeyPatch) -> None:
    patch_client(monkeypatch, RoutingAsyncClient({"/repos/o/r/pulls": [{**pull_json(1, "A"), "base": "main"}]}))
    with pytest.raises(GatewayError) as info:
        await gh.GitHubClient(token=None).list_open_pull_requests(REPO)
    assert info.value.kind == "malformed"

    patch_client(monkeypatch, RoutingAsyncClient({"/repos/o/r/pulls/7/files": [["src/a.py", 1, 0]]}))
    with pytest.raises(GatewayError) as info:
        await gh.GitHubClient(token=None).fetch_pull_request_file_stats(REPO, 7)
    assert info.value.kind == "malformed"


def test_parse_diff_file_names_unquotes_special_paths() -> None:
    diff = (
        'diff --git "a/caf\\303\\251.txt" "b/caf\\303\\251.txt"\n'
        "index 1111111..2222222 100644\n"
        'diff --git "a/tab\\there.txt" "b/tab\\there.txt"\n'
        'diff --git a/plain.txt "b/quote\\"d.txt"\n'
        'diff --git "a/old \\344.txt" b/new.txt\n'
    )
    assert gh.parse_diff_file_names(diff) == ["café.txt", "tab\there.txt", 'quote"d.txt', "new.txt"]


def test_unquote_git_path() -> None:
    assert gh.unquote_git_path("b/plain") == "b/plain"
    assert gh.unquote_git_path("\\342\\234\\223 done") == "✓ done"
    assert gh.unquote_git_path("back\\\\slash") == "back\\slash"


def test_commit_co_authors_follow_the_author() -> None:
    commit = gh.parse_commit(
        {
            "commit": {
                "message": (
                    "Pair on parser\n\nDetails\n\n"
                    "Co-authored-by: Bob B <bob@example.com>\n"
                    "co-authored-by: Carol C <carol@example.com>\n"
                    "Co-authored-by: Alice A <alice@example.com>\n"
                    "Co-authored-by: Bob B <bob@users.noreply.github.com>"
                ),
                "author": {"name": "Alice A"},
                "committer": {"date": "2024-01-03T08:00:00Z"},
            },
            "author": {"login": "alice"},
        }
    )
    assert [(a.login, a.name) for a in commit.authors] == [("alice", "Alice A"), ("", "Bob B"), ("", "Carol C")]

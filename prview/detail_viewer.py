from __future__ import annotations

import textwrap

from .github import Commit, PullRequestDetail

NO_DESCRIPTION = "No description provided"
RULE = "─"

UP_KEYS = {"up", "k"}
DOWN_KEYS = {"down", "j"}
PAGE_UP_KEYS = {"pageup", "b"}
PAGE_DOWN_KEYS = {"pagedown", "f", "space"}
HALF_PAGE_UP_KEYS = {"ctrl+u"}
HALF_PAGE_DOWN_KEYS = {"ctrl+d"}
TOP_KEYS = {"home", "g"}
BOTTOM_KEYS = {"end", "G", "shift+g"}


def _commit_line(commit: Commit) -> str:
    authors = ", ".join(a.login or a.name for a in commit.authors)
    return f"• {commit.headline} by {authors}"


def build_detail_content(detail: PullRequestDetail) -> str:
    """Assemble the text shown in the detail view.

    Sections, in order: title, merge summary, description, requested
    reviewers, changed files, commits. The result only depends on `detail`.
    """
    lines = [
        detail.title,
        f"{detail.author} wants to merge into {detail.base_branch} from {detail.head_branch}",
        "",
        "Description:",
        detail.body if detail.body.strip() else NO_DESCRIPTION,
        "",
        "Requested reviewers:",
    ]
    lines.extend(r.reviewer for r in detail.review_requests)
    lines.extend(["", "Changed files:"])
    for f in detail.changed_files:
        line = f.path
        if f.additions > 0:
            line += f" +{f.additions}"
        if f.deletions > 0:
            line += f" -{f.deletions}"
        lines.append(line)
    lines.extend(["", "Commits:"])
    lines.extend(_commit_line(c) for c in detail.commits)
    return "\n".join(lines) + "\n"


def header_line(title: str, width: int) -> str:
    """Title label followed by a rule filling the rest of `width`."""
    label = f"╭ {title} ├"
    return label + RULE * max(0, width - len(label))


def footer_line(fraction: float, width: int) -> str:
    """Rule followed by the scroll percentage, right aligned to `width`."""
    label = f"┤ {fraction * 100:3.0f}% ╮"
    return RULE * max(0, width - len(label)) + label


class DetailViewer:
    """Read-only text buffer with a vertically scrolling viewport.

    Lines are wrapped to the viewport width. The scroll offset is the index
    of the first visible wrapped line.
    """

    def __init__(self) -> None:
        self._content = ""
        self._lines: list[str] = []
        self._offset = 0
        self._width = 0
        self._height = 0

    @property
    def content(self) -> str:
        return self._content

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def set_content(self, text: str) -> None:
        """Replace the buffer and scroll back to the top."""
        self._content = text
        self._offset = 0
        self._layout()

    def clear(self) -> None:
        self.set_content("")

    def set_size(self, width: int, height: int) -> None:
        """Resize the viewport, keeping the scroll fraction."""
        fraction = self.scroll_fraction()
        self._width = max(0, width)
        self._height = max(0, height)
        self._layout()
        self._offset = round(fraction * self._max_offset())

    def _layout(self) -> None:
        lines: list[str] = []
        for raw in self._content.splitlines():
            if self._width > 0 and len(raw) > self._width:
                lines.extend(textwrap.wrap(raw, self._width, replace_whitespace=False, drop_whitespace=False))
            else:
                lines.append(raw)
        self._lines = lines
        self._offset = min(self._offset, self._max_offset())

    def _max_offset(self) -> int:
        return max(0, len(self._lines) - self._height)

    def scroll_fraction(self) -> float:
        """Scroll position in [0, 1]; 0 when the content fits the viewport."""
        max_offset = self._max_offset()
        if max_offset == 0:
            return 0.0
        return min(1.0, max(0.0, self._offset / max_offset))

    def scroll_to(self, offset: int) -> None:
        self._offset = min(max(0, offset), self._max_offset())

    def visible_lines(self) -> list[str]:
        return self._lines[self._offset : self._offset + self._height]

    def handle_key(self, key: str) -> bool:
        """Scroll for a key; returns True if the key is a scroll key."""
        page = max(1, self._height)
        half = max(1, self._height // 2)
        if key in UP_KEYS:
            self.scroll_to(self._offset - 1)
        elif key in DOWN_KEYS:
            self.scroll_to(self._offset + 1)
        elif key in PAGE_UP_KEYS:
            self.scroll_to(self._offset - page)
        elif key in PAGE_DOWN_KEYS:
            self.scroll_to(self._offset + page)
        elif key in HALF_PAGE_UP_KEYS:
            self.scroll_to(self._offset - half)
        elif key in HALF_PAGE_DOWN_KEYS:
            self.scroll_to(self._offset + half)
        elif key in TOP_KEYS:
            self.scroll_to(0)
        elif key in BOTTOM_KEYS:
            self.scroll_to(self._max_offset())
        else:
            return False
        return True

from __future__ import annotations

import re

from rich.text import Text
from textual.widgets import Static

from ..detail_viewer import DetailViewer, footer_line, header_line
from ..github import PullRequestDetail
from .palette import Palette

SECTION_HEADINGS = {"Description:", "Requested reviewers:", "Changed files:", "Commits:"}
ADDED_RE = re.compile(r" \+\d+(?= -\d+$|$)")
DELETED_RE = re.compile(r" -\d+$")
SUMMARY_RE = re.compile(r"wants to merge into (\S+) from (\S+)$")


class DetailView(Static):
    """Widget showing the detail viewport between a header and a footer rule."""

    def __init__(self, viewer: DetailViewer, palette: Palette) -> None:
        super().__init__(id="detail")
        self.viewer = viewer
        self.palette = palette

    def _style_line(self, line: str, index: int) -> Text:
        palette = self.palette
        text = Text(line)
        if index == 0:
            text.stylize(palette.pr_title)
        elif line in SECTION_HEADINGS:
            text.stylize(palette.heading)
        elif index == 1:
            match = SUMMARY_RE.search(line)
            if match:
                text.stylize(palette.branch, *match.span(1))
                text.stylize(palette.branch, *match.span(2))
        else:
            text.highlight_regex(ADDED_RE, palette.added)
            text.highlight_regex(DELETED_RE, palette.deleted)
        return text

    def render_text(self, detail: PullRequestDetail | None) -> Text:
        viewer = self.viewer
        width = viewer.width
        title = f"#{detail.number} {detail.title}" if detail else "Pull request"
        text = Text()
        text.append(header_line(title, width)[: width or None], style=self.palette.rule)
        text.append("\n")
        visible = viewer.visible_lines()
        for i, line in enumerate(visible):
            text.append_text(self._style_line(line, viewer.offset + i))
            text.append("\n")
        # Keep the footer pinned to the bottom of the viewport
        text.append("\n" * max(0, viewer.height - len(visible)))
        text.append(footer_line(viewer.scroll_fraction(), width)[-width:], style=self.palette.rule)
        return text

    def refresh_view(self, detail: PullRequestDetail | None) -> None:
        self.update(self.render_text(detail))

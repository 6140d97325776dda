from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Palette:
    """Rich style strings used by the widgets.

    Built once by the app and handed to each widget at construction time.
    """

    title: str = "bold #cad3f5 on #5a56e0"
    item_title: str = "#dddddd"
    item_desc: str = "#777777"
    selected_title: str = "bold #ffffff on #494d65"
    selected_desc: str = "#9e9e9e on #494d65"
    dim: str = "#6c7086"
    heading: str = "bold"
    pr_title: str = "bold #eeeeee"
    branch: str = "#00afff"
    added: str = "#00d700"
    deleted: str = "#ff0000"
    rule: str = "#6c7086"
    error: str = "bold #ff5f5f"
    notice: str = "#ffaf00"


DEFAULT_PALETTE = Palette()

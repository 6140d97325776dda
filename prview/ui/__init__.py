from .detail_view import DetailView
from .message_panel import MessagePanel
from .palette import DEFAULT_PALETTE, Palette
from .pr_list import PRList
from .status import StatusBar

__all__ = ["DEFAULT_PALETTE", "DetailView", "MessagePanel", "Palette", "PRList", "StatusBar"]

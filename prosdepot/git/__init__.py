"""Depot diffing and publishing."""

from .diff import DepotDiff, diff_depots, format_commit_message, get_commit_message
from .publisher import PublishResult, PublishState, Publisher

__all__ = [
    "DepotDiff",
    "PublishResult",
    "PublishState",
    "Publisher",
    "diff_depots",
    "format_commit_message",
    "get_commit_message",
]

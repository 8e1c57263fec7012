"""Depot change detection and commit message generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from ..schema import BaseTemplate

DEFAULT_MESSAGE_TEMPLATE = "%MESSAGE%"
GENERIC_MESSAGE = "Update one or more version(s)"
_MESSAGE_PLACEHOLDER = "%MESSAGE%"


@dataclass(frozen=True)
class DepotDiff:
    """Entries added, updated or removed between two depots, matched by location."""

    added: Sequence[BaseTemplate] = field(default_factory=tuple)
    updated: Sequence[BaseTemplate] = field(default_factory=tuple)
    removed: Sequence[BaseTemplate] = field(default_factory=tuple)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated or self.removed)


def diff_depots(old_depot: Sequence[BaseTemplate], new_depot: Sequence[BaseTemplate]) -> DepotDiff:
    old_by_location = {entry.metadata.location: entry for entry in old_depot}
    added: List[BaseTemplate] = []
    updated: List[BaseTemplate] = []

    for new_entry in new_depot:
        location = new_entry.metadata.location
        old_entry = old_by_location.pop(location, None)
        if old_entry is None:
            added.append(new_entry)
        elif old_entry.to_json_dict() != new_entry.to_json_dict():
            updated.append(new_entry)

    return DepotDiff(
        added=tuple(added),
        updated=tuple(updated),
        removed=tuple(old_by_location.values()),
    )


def get_commit_message(
    old_depot: Sequence[BaseTemplate], new_depot: Sequence[BaseTemplate]
) -> str:
    """Describe a single new release by version; anything else gets the generic message."""
    diff = diff_depots(old_depot, new_depot)
    if len(diff.added) == 1 and not diff.updated and not diff.removed:
        return f"Release version {diff.added[0].version}"
    return GENERIC_MESSAGE


def format_commit_message(template: str | None, generated: str) -> str:
    """Substitute ``%MESSAGE%`` in a user-supplied template."""
    if not template:
        return generated
    return template.replace(_MESSAGE_PLACEHOLDER, generated)


__all__ = [
    "DEFAULT_MESSAGE_TEMPLATE",
    "DepotDiff",
    "GENERIC_MESSAGE",
    "diff_depots",
    "format_commit_message",
    "get_commit_message",
]

"""Core data models shared across prosdepot components."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Optional

from .schema import BaseTemplate


@dataclass(frozen=True)
class RepositoryIdentifier:
    """A GitHub repository addressed as ``owner/repo``."""

    owner: str
    repo: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"


def to_repository_identifier(owner_and_repo_name: str) -> RepositoryIdentifier:
    """Split ``owner/repo`` on the first slash.

    For example ``"jerrylum/My-Project"`` becomes
    ``RepositoryIdentifier(owner="jerrylum", repo="My-Project")``. Strings without a
    slash are rejected; empty halves are kept as-is.
    """
    if "/" not in owner_and_repo_name:
        raise ValueError(f"Invalid repository name: {owner_and_repo_name!r}")
    owner, repo = owner_and_repo_name.split("/", 1)
    return RepositoryIdentifier(owner=owner, repo=repo)


class IncludeStrategy(str, Enum):
    """Which releases contribute assets to the depot."""

    ALL = "all"
    STABLE_ONLY = "stable-only"
    PRERELEASE_ONLY = "prerelease-only"


def get_include_strategy(value: str) -> IncludeStrategy:
    """Parse an include strategy, rejecting anything but the three literals."""
    for strategy in IncludeStrategy:
        if strategy.value == value:
            return strategy
    raise ValueError(f"Invalid include strategy: {value!r}")


@dataclass(frozen=True)
class DownloadableZip:
    """A zip asset from a GitHub release that may contain a template.

    ``result`` holds the parsed depot entry once it is known, either reused from
    the previous depot or freshly extracted from the ``template.pros`` file.
    """

    asset_id: int
    download_url: str
    updated_at: str
    prerelease: bool
    result: Optional[BaseTemplate] = None

    @property
    def updated_at_datetime(self) -> datetime:
        return parse_timestamp(self.updated_at)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp from the GitHub API; naive values are UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


__all__ = [
    "DownloadableZip",
    "IncludeStrategy",
    "RepositoryIdentifier",
    "get_include_strategy",
    "parse_timestamp",
    "to_repository_identifier",
]

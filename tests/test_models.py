"""Tests for repository identifiers and include strategies."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from prosdepot.models import (
    DownloadableZip,
    IncludeStrategy,
    RepositoryIdentifier,
    get_include_strategy,
    to_repository_identifier,
)


def test_repository_identifier_splits_owner_and_repo() -> None:
    rid = to_repository_identifier("jerrylum/PROS-Test-Project")

    assert rid == RepositoryIdentifier(owner="jerrylum", repo="PROS-Test-Project")
    assert str(rid) == "jerrylum/PROS-Test-Project"


@pytest.mark.parametrize(
    ("value", "owner", "repo"),
    [
        ("jerrylum/", "jerrylum", ""),
        ("/", "", ""),
        ("owner/repo/extra", "owner", "repo/extra"),
    ],
)
def test_repository_identifier_splits_on_first_slash(value: str, owner: str, repo: str) -> None:
    rid = to_repository_identifier(value)

    assert (rid.owner, rid.repo) == (owner, repo)


@pytest.mark.parametrize("value", ["", "jerrylum"])
def test_repository_identifier_requires_slash(value: str) -> None:
    with pytest.raises(ValueError):
        to_repository_identifier(value)


@pytest.mark.parametrize("value", ["all", "stable-only", "prerelease-only"])
def test_include_strategy_accepts_known_values(value: str) -> None:
    assert get_include_strategy(value).value == value


@pytest.mark.parametrize("value", ["", "invalid", "ALL", "stable", " all"])
def test_include_strategy_rejects_other_values(value: str) -> None:
    with pytest.raises(ValueError):
        get_include_strategy(value)


def test_include_strategy_is_string_valued() -> None:
    assert IncludeStrategy("stable-only") is IncludeStrategy.STABLE_ONLY


def test_downloadable_zip_parses_github_timestamps() -> None:
    zip_ = DownloadableZip(
        asset_id=1,
        download_url="https://example.com/a.zip",
        updated_at="2021-01-01T00:00:00Z",
        prerelease=False,
    )

    assert zip_.result is None
    assert zip_.updated_at_datetime == datetime(2021, 1, 1, tzinfo=UTC)

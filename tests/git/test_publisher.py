"""Tests for the depot publisher."""

from __future__ import annotations

from prosdepot.git.publisher import PublishState, Publisher
from prosdepot.github.client import GitHubError
from prosdepot.models import RepositoryIdentifier

from tests._fixtures.github import FakeGitHubClient

TARGET = RepositoryIdentifier("jerrylum", "depot-test")


def _publish(client: FakeGitHubClient, previous_sha: str | None = "old-sha"):
    return Publisher(client).publish(
        TARGET,
        branch="depot",
        path="depot.json",
        content="[]",
        message="Release version 1.0.0",
        previous_sha=previous_sha,
    )


def test_publisher_updates_existing_branch() -> None:
    client = FakeGitHubClient(branch_exists=True)

    result = _publish(client)

    assert result.ok is True
    assert result.state is PublishState.DONE
    assert client.call_names() == ["get_branch", "put_file"]
    put_kwargs = client.calls[1][2]
    assert put_kwargs == {
        "branch": "depot",
        "path": "depot.json",
        "content": "[]",
        "message": "Release version 1.0.0",
        "sha": "old-sha",
    }


def test_publisher_omits_precondition_without_previous_file() -> None:
    client = FakeGitHubClient(branch_exists=True)

    _publish(client, previous_sha=None)

    assert client.calls[1][2]["sha"] is None


def test_publisher_bootstraps_orphan_branch() -> None:
    client = FakeGitHubClient(branch_exists=False)

    result = _publish(client)

    assert result.ok is True
    assert client.call_names() == ["get_branch", "create_tree", "create_commit", "create_ref"]
    assert client.calls[1][2] == {"depot.json": "[]"}
    assert client.calls[2][2] == {
        "message": "Release version 1.0.0",
        "tree_sha": "tree-sha",
        "parents": [],
    }
    assert client.calls[3][2:] == ("refs/heads/depot", "commit-sha")


def test_publisher_fails_on_other_branch_errors() -> None:
    client = FakeGitHubClient()
    client.branch_error = GitHubError(403, "Resource not accessible by integration")

    result = _publish(client)

    assert result.ok is False
    assert result.state is PublishState.FAILED
    assert "Resource not accessible" in (result.error or "")
    assert client.call_names() == ["get_branch"]


def test_publisher_reports_update_conflict() -> None:
    client = FakeGitHubClient(branch_exists=True)
    client.put_error = GitHubError(409, "depot.json does not match old-sha")

    result = _publish(client)

    assert result.state is PublishState.FAILED
    assert client.call_names() == ["get_branch", "put_file"]


def test_publisher_reports_bootstrap_failure_without_retry() -> None:
    client = FakeGitHubClient(branch_exists=False)
    client.tree_error = GitHubError(422, "Invalid tree")

    result = _publish(client)

    assert result.state is PublishState.FAILED
    assert client.call_names() == ["get_branch", "create_tree"]

"""Publishing of the depot file to its target branch."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..github.client import GitHubClient, GitHubError, NotFoundError
from ..logging import get_logger
from ..models import RepositoryIdentifier


class PublishState(str, Enum):
    CHECKING_BRANCH = "checking-branch"
    UPDATING_EXISTING_BRANCH = "updating-existing-branch"
    BOOTSTRAPPING_ORPHAN_BRANCH = "bootstrapping-orphan-branch"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class PublishResult:
    """Terminal state of a publish attempt."""

    state: PublishState
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state is PublishState.DONE


class Publisher:
    """Writes the depot to a branch, creating the branch as an orphan when missing.

    There is exactly one attempt per run; failures are reported, never retried.
    """

    def __init__(self, client: GitHubClient) -> None:
        self.client = client
        self.logger = get_logger("publisher")

    def publish(
        self,
        target: RepositoryIdentifier,
        *,
        branch: str,
        path: str,
        content: str,
        message: str,
        previous_sha: str | None = None,
    ) -> PublishResult:
        self._enter(PublishState.CHECKING_BRANCH, target, branch)
        try:
            self.client.get_branch(target, branch)
        except NotFoundError:
            self._enter(PublishState.BOOTSTRAPPING_ORPHAN_BRANCH, target, branch)
            return self._bootstrap_orphan_branch(target, branch, path, content, message)
        except GitHubError as exc:
            return self._fail(f"Unable to check branch {branch} on {target}: {exc}")

        self._enter(PublishState.UPDATING_EXISTING_BRANCH, target, branch)
        return self._update_existing_branch(target, branch, path, content, message, previous_sha)

    # ------------------------------------------------------------------
    # Helpers

    def _update_existing_branch(
        self,
        target: RepositoryIdentifier,
        branch: str,
        path: str,
        content: str,
        message: str,
        previous_sha: str | None,
    ) -> PublishResult:
        try:
            self.client.put_file(
                target,
                branch=branch,
                path=path,
                content=content,
                message=message,
                sha=previous_sha,
            )
        except GitHubError as exc:
            return self._fail(f"Unable to update {path} on {target}@{branch}: {exc}")
        return self._done(target, branch)

    def _bootstrap_orphan_branch(
        self,
        target: RepositoryIdentifier,
        branch: str,
        path: str,
        content: str,
        message: str,
    ) -> PublishResult:
        try:
            tree = self.client.create_tree(target, {path: content})
            commit = self.client.create_commit(
                target, message=message, tree_sha=tree["sha"], parents=[]
            )
            self.client.create_ref(target, f"refs/heads/{branch}", commit["sha"])
        except (GitHubError, KeyError) as exc:
            return self._fail(f"Unable to create branch {branch} on {target}: {exc}")
        return self._done(target, branch)

    def _enter(self, state: PublishState, target: RepositoryIdentifier, branch: str) -> None:
        self.logger.debug("Publish %s@%s: %s", target, branch, state.value)

    def _done(self, target: RepositoryIdentifier, branch: str) -> PublishResult:
        self._enter(PublishState.DONE, target, branch)
        self.logger.info("Published depot to %s@%s", target, branch)
        return PublishResult(PublishState.DONE)

    def _fail(self, reason: str) -> PublishResult:
        self.logger.error(reason)
        return PublishResult(PublishState.FAILED, error=reason)


__all__ = ["PublishResult", "PublishState", "Publisher"]

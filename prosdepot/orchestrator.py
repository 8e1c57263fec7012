"""Pipeline orchestration for a depot sync run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .assets import collect_downloadable_zips, should_include_zip
from .config import SyncSettings
from .git.diff import DepotDiff, diff_depots, format_commit_message, get_commit_message
from .git.publisher import PublishResult, Publisher
from .github.client import GitHubClient, GitHubError, RemoteFile
from .logging import get_logger
from .models import DownloadableZip
from .schema import BaseTemplate, DepotFormatError, dump_depot, load_depot
from .stores import DepotCache
from .templates import TemplateFetcher


class SyncError(RuntimeError):
    """Raised when a sync run cannot proceed at all."""


@dataclass
class SyncOutcome:
    """Result of a depot sync run."""

    depot: List[BaseTemplate]
    content: str
    message: str
    diff: DepotDiff
    publish: Optional[PublishResult] = None

    @property
    def published(self) -> bool:
        return self.publish is not None and self.publish.ok

    @property
    def failed(self) -> bool:
        return self.publish is not None and not self.publish.ok


@dataclass
class _PreviousDepot:
    cache: DepotCache
    file: Optional[RemoteFile]


class Orchestrator:
    """Coordinates release scanning, cache reuse, parsing and publishing.

    Unresolved assets are fetched sequentially so a run never has more than one
    download in flight against the source repository.
    """

    def __init__(
        self,
        client: GitHubClient,
        *,
        publisher: Publisher | None = None,
        fetcher: TemplateFetcher | None = None,
    ) -> None:
        self.client = client
        self.publisher = publisher or Publisher(client)
        self._fetcher = fetcher
        self.logger = get_logger("orchestrator")

    def run_sync(self, settings: SyncSettings) -> SyncOutcome:
        self.logger.info("Scanning releases of %s", settings.source)
        try:
            releases = self.client.list_releases(settings.source)
        except GitHubError as exc:
            raise SyncError(f"Unable to list releases of {settings.source}: {exc}") from exc

        zips = [
            zip_
            for zip_ in collect_downloadable_zips(releases)
            if should_include_zip(zip_, settings.include_strategy)
        ]
        self.logger.info(
            "Found %d zip asset(s) in %d release(s) (%s)",
            len(zips),
            len(releases),
            settings.include_strategy.value,
        )

        previous = self._load_previous_depot(settings)
        resolved = previous.cache.resolve(zips)
        pending = DepotCache.pending(resolved)
        self.logger.info(
            "%d asset(s) reused from the previous depot, %d to download",
            len(resolved) - len(pending),
            len(pending),
        )

        fetcher = self._fetcher or TemplateFetcher(self.client, settings.source)
        completed = [fetcher.fetch(zip_) if zip_.result is None else zip_ for zip_ in resolved]

        old_depot = list(previous.cache.entries)
        new_depot = _collect_results(completed)
        diff = diff_depots(old_depot, new_depot)
        message = format_commit_message(
            settings.commit_message, get_commit_message(old_depot, new_depot)
        )
        content = dump_depot(new_depot)
        outcome = SyncOutcome(depot=new_depot, content=content, message=message, diff=diff)
        self.logger.info(
            "Depot has %d template(s): %d added, %d updated, %d removed",
            len(new_depot),
            len(diff.added),
            len(diff.updated),
            len(diff.removed),
        )

        if not settings.push:
            self.logger.info("Push disabled; not publishing")
            return outcome
        if previous.file is not None and previous.file.content == content:
            self.logger.info("Depot already up to date")
            return outcome

        outcome.publish = self.publisher.publish(
            settings.target,
            branch=settings.target_branch,
            path=settings.target_path,
            content=content,
            message=message,
            previous_sha=previous.file.sha if previous.file is not None else None,
        )
        return outcome

    # ------------------------------------------------------------------
    # Helpers

    def _load_previous_depot(self, settings: SyncSettings) -> _PreviousDepot:
        try:
            remote = self.client.get_file(
                settings.target, settings.target_branch, settings.target_path
            )
        except GitHubError as exc:
            self.logger.warning("Unable to read the previous depot: %s", exc)
            return _PreviousDepot(cache=DepotCache.empty(), file=None)

        if remote is None:
            self.logger.info(
                "No previous depot at %s@%s:%s",
                settings.target,
                settings.target_branch,
                settings.target_path,
            )
            return _PreviousDepot(cache=DepotCache.empty(), file=None)

        try:
            entries = load_depot(remote.content)
        except DepotFormatError as exc:
            self.logger.warning("Ignoring unreadable previous depot: %s", exc)
            return _PreviousDepot(cache=DepotCache.empty(), file=remote)

        self.logger.debug(
            "Previous depot has %d template(s), last updated %s",
            len(entries),
            remote.last_modified.isoformat(),
        )
        return _PreviousDepot(
            cache=DepotCache(entries=entries, last_updated=remote.last_modified, available=True),
            file=remote,
        )


def _collect_results(zips: Sequence[DownloadableZip]) -> List[BaseTemplate]:
    return [zip_.result for zip_ in zips if zip_.result is not None]


__all__ = ["Orchestrator", "SyncError", "SyncOutcome"]

"""Reuse of depot entries produced by a previous run."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..logging import get_logger
from ..models import DownloadableZip
from ..schema import BaseTemplate

_logger = get_logger("stores.depot_cache")


def build_depot_map(depot: Iterable[BaseTemplate]) -> Dict[str, BaseTemplate]:
    """Index depot entries by their ``metadata.location``."""
    return {entry.metadata.location: entry for entry in depot}


def has_been_updated_after(zip_: DownloadableZip, target_date: datetime) -> bool:
    """Return True if the asset changed strictly after ``target_date``.

    An asset updated at exactly ``target_date`` is not considered newer.
    """
    return zip_.updated_at_datetime > target_date


def get_previous_result(
    zip_: DownloadableZip, depot_map: Mapping[str, BaseTemplate]
) -> Optional[BaseTemplate]:
    return depot_map.get(zip_.download_url)


def apply_previous_result(
    zip_: DownloadableZip,
    depot_map: Mapping[str, BaseTemplate],
    depot_last_updated: datetime,
) -> DownloadableZip:
    """Return a copy of ``zip_`` carrying the cached entry, or ``None`` if it must be refetched."""
    if has_been_updated_after(zip_, depot_last_updated):
        return replace(zip_, result=None)
    return replace(zip_, result=get_previous_result(zip_, depot_map))


@dataclass
class DepotCache:
    """Previous depot snapshot used to skip unchanged assets.

    ``available`` is False when no previous depot could be read; in that case every
    candidate is fetched.
    """

    entries: Sequence[BaseTemplate] = field(default_factory=list)
    last_updated: datetime = field(default_factory=lambda: datetime.min.replace(tzinfo=UTC))
    available: bool = False

    def __post_init__(self) -> None:
        self._map = build_depot_map(self.entries)

    @classmethod
    def empty(cls) -> "DepotCache":
        return cls()

    @property
    def depot_map(self) -> Mapping[str, BaseTemplate]:
        return self._map

    def resolve(self, zips: Iterable[DownloadableZip]) -> List[DownloadableZip]:
        """Apply previous results and drop assets already known not to be templates."""
        resolved: List[DownloadableZip] = []
        for zip_ in zips:
            if not self.available:
                resolved.append(replace(zip_, result=None))
                continue
            updated = apply_previous_result(zip_, self._map, self.last_updated)
            if updated.result is None and not has_been_updated_after(zip_, self.last_updated):
                _logger.debug("Skipping %s; not a template in the previous depot", zip_.download_url)
                continue
            if updated.result is not None:
                _logger.debug("Reusing cached entry for %s", zip_.download_url)
            resolved.append(updated)
        return resolved

    @staticmethod
    def pending(zips: Iterable[DownloadableZip]) -> List[DownloadableZip]:
        return [zip_ for zip_ in zips if zip_.result is None]


__all__ = [
    "DepotCache",
    "apply_previous_result",
    "build_depot_map",
    "get_previous_result",
    "has_been_updated_after",
]

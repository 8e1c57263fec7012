"""Release asset selection."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping

from .models import DownloadableZip, IncludeStrategy

ZIP_SUFFIX = ".zip"


def get_downloadable_zips(release: Mapping[str, Any]) -> List[DownloadableZip]:
    """Return the zip assets of a release; other assets are ignored."""
    prerelease = bool(release.get("prerelease", False))
    zips: List[DownloadableZip] = []
    for asset in release.get("assets") or []:
        if not str(asset.get("name", "")).endswith(ZIP_SUFFIX):
            continue
        zips.append(
            DownloadableZip(
                asset_id=asset["id"],
                download_url=asset["browser_download_url"],
                updated_at=asset["updated_at"],
                prerelease=prerelease,
                result=None,
            )
        )
    return zips


def collect_downloadable_zips(releases: Iterable[Mapping[str, Any]]) -> List[DownloadableZip]:
    return [zip_ for release in releases for zip_ in get_downloadable_zips(release)]


def should_include_zip(zip_: DownloadableZip, include_strategy: IncludeStrategy) -> bool:
    if include_strategy is IncludeStrategy.STABLE_ONLY:
        return not zip_.prerelease
    if include_strategy is IncludeStrategy.PRERELEASE_ONLY:
        return zip_.prerelease
    return True


__all__ = ["ZIP_SUFFIX", "collect_downloadable_zips", "get_downloadable_zips", "should_include_zip"]

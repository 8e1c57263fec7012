"""In-memory stand-ins for the GitHub API used across tests."""

from __future__ import annotations

import io
import json
import zipfile
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from prosdepot.github.client import GitHubError, NotFoundError, RemoteFile
from prosdepot.models import RepositoryIdentifier


def template_pros(
    name: str = "LemLib",
    version: str = "1.0.0",
    *,
    target: str = "v5",
    supported_kernels: str = "^4.1.0",
) -> str:
    """Return a ``template.pros`` document as written by the PROS CLI."""
    return json.dumps(
        {
            "py/object": "pros.conductor.templates.external_template.ExternalTemplate",
            "py/state": {
                "metadata": {"origin": "pros-mainline"},
                "name": name,
                "supported_kernels": supported_kernels,
                "system_files": ["include/lemlib/api.hpp", "firmware/LemLib.a"],
                "target": target,
                "user_files": ["src/main.cpp"],
                "version": version,
            },
        }
    )


def make_zip(files: Mapping[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def make_corrupt_zip(name: str, content: str) -> bytes:
    """Return a deflated zip whose ``name`` member has a broken compressed stream."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(name, content)
    data = bytearray(buffer.getvalue())
    name_length = int.from_bytes(data[26:28], "little")
    extra_length = int.from_bytes(data[28:30], "little")
    start = 30 + name_length + extra_length
    # 0xFF starts a final deflate block of the reserved type 3.
    data[start : start + 16] = b"\xff" * 16
    return bytes(data)


def make_asset(
    asset_id: int,
    name: str,
    *,
    updated_at: str = "2024-01-01T00:00:00Z",
    url: str | None = None,
) -> Dict[str, Any]:
    return {
        "id": asset_id,
        "name": name,
        "browser_download_url": url or f"https://github.com/o/r/releases/download/v/{name}",
        "updated_at": updated_at,
    }


def make_release(*assets: Dict[str, Any], prerelease: bool = False) -> Dict[str, Any]:
    return {"prerelease": prerelease, "assets": list(assets)}


class FakeGitHubClient:
    """Records calls and serves canned releases, assets and files."""

    def __init__(
        self,
        releases: Optional[List[Dict[str, Any]]] = None,
        *,
        archives: Optional[Dict[int, bytes]] = None,
        depot_file: Optional[RemoteFile] = None,
        branch_exists: bool = True,
    ) -> None:
        self.releases = releases or []
        self.archives = archives or {}
        self.depot_file = depot_file
        self.branch_exists = branch_exists
        self.list_error: Optional[GitHubError] = None
        self.get_file_error: Optional[GitHubError] = None
        self.branch_error: Optional[GitHubError] = None
        self.put_error: Optional[GitHubError] = None
        self.tree_error: Optional[GitHubError] = None
        self.downloads: List[int] = []
        self.calls: List[tuple] = []

    def list_releases(self, rid: RepositoryIdentifier) -> List[Dict[str, Any]]:
        self.calls.append(("list_releases", str(rid)))
        if self.list_error is not None:
            raise self.list_error
        return self.releases

    def download_asset(self, rid: RepositoryIdentifier, asset_id: int) -> bytes:
        self.downloads.append(asset_id)
        if asset_id not in self.archives:
            raise GitHubError(500, "asset unavailable")
        return self.archives[asset_id]

    def get_file(self, rid: RepositoryIdentifier, branch: str, path: str) -> Optional[RemoteFile]:
        self.calls.append(("get_file", str(rid), branch, path))
        if self.get_file_error is not None:
            raise self.get_file_error
        return self.depot_file

    def get_branch(self, rid: RepositoryIdentifier, branch: str) -> Dict[str, Any]:
        self.calls.append(("get_branch", str(rid), branch))
        if self.branch_error is not None:
            raise self.branch_error
        if not self.branch_exists:
            raise NotFoundError(404, "Branch not found")
        return {"name": branch}

    def put_file(self, rid: RepositoryIdentifier, **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(("put_file", str(rid), kwargs))
        if self.put_error is not None:
            raise self.put_error
        return {"content": {"sha": "new-sha"}}

    def create_tree(self, rid: RepositoryIdentifier, files: Mapping[str, str]) -> Dict[str, Any]:
        self.calls.append(("create_tree", str(rid), dict(files)))
        if self.tree_error is not None:
            raise self.tree_error
        return {"sha": "tree-sha"}

    def create_commit(self, rid: RepositoryIdentifier, **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(("create_commit", str(rid), kwargs))
        return {"sha": "commit-sha"}

    def create_ref(self, rid: RepositoryIdentifier, ref: str, sha: str) -> Dict[str, Any]:
        self.calls.append(("create_ref", str(rid), ref, sha))
        return {"ref": ref}

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


def remote_depot(content: str, *, sha: str = "old-sha", last_modified: datetime) -> RemoteFile:
    return RemoteFile(content=content, sha=sha, last_modified=last_modified)


__all__ = [
    "FakeGitHubClient",
    "make_asset",
    "make_release",
    "make_corrupt_zip",
    "make_zip",
    "remote_depot",
    "template_pros",
]

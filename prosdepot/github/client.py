"""Minimal GitHub REST client used to read releases and publish the depot."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode, urlparse
from urllib.request import HTTPRedirectHandler, Request, build_opener

from ..logging import get_logger
from ..models import RepositoryIdentifier, parse_timestamp

DEFAULT_API_URL = "https://api.github.com"
_JSON_ACCEPT = "application/vnd.github+json"
_API_VERSION = "2022-11-28"
_PAGE_SIZE = 100


class GitHubError(RuntimeError):
    """Raised when a GitHub API call fails."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"GitHub API error {status}: {message}" if status else message)
        self.status = status
        self.message = message


class NotFoundError(GitHubError):
    """Raised for 404 responses."""


@dataclass
class HttpRequest:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    data: Optional[bytes] = None
    timeout: float = 30.0


@dataclass
class HttpResponse:
    status: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass
class RemoteFile:
    """A file read from a branch through the contents API."""

    content: str
    sha: str
    last_modified: datetime


Transport = Callable[[HttpRequest], HttpResponse]


class _StripAuthOnRedirect(HTTPRedirectHandler):
    """Drop the token when GitHub redirects asset downloads to another host."""

    def redirect_request(self, req, fp, code, msg, headers, newurl):  # type: ignore[no-untyped-def]
        new_request = super().redirect_request(req, fp, code, msg, headers, newurl)
        if new_request is not None and urlparse(newurl).netloc != urlparse(req.full_url).netloc:
            new_request.remove_header("Authorization")
        return new_request


def urllib_transport(request: HttpRequest) -> HttpResponse:
    """Send a request with ``urllib``; HTTP error statuses are returned, not raised."""
    http_request = Request(
        request.url, data=request.data, headers=request.headers, method=request.method
    )
    opener = build_opener(_StripAuthOnRedirect())
    try:
        with opener.open(http_request, timeout=request.timeout) as response:
            return HttpResponse(
                status=response.status, body=response.read(), headers=dict(response.headers)
            )
    except HTTPError as exc:
        body = exc.read() if hasattr(exc, "read") else b""
        return HttpResponse(status=exc.code, body=body or b"", headers=dict(exc.headers or {}))
    except URLError as exc:
        raise GitHubError(0, f"Request to {request.url} failed: {exc.reason}") from exc


class GitHubClient:
    """Explicit client object; every collaborator receives it instead of building its own."""

    def __init__(
        self,
        token: str | None = None,
        *,
        api_url: str = DEFAULT_API_URL,
        request_timeout: float = 30.0,
        transport: Transport | None = None,
    ) -> None:
        self.token = token or None
        self.api_url = api_url.rstrip("/")
        self.request_timeout = request_timeout
        self._transport = transport or urllib_transport
        self.logger = get_logger("github")

    # ------------------------------------------------------------------
    # Releases

    def list_releases(self, rid: RepositoryIdentifier) -> List[Dict[str, Any]]:
        """Return every release of ``rid``, following pagination."""
        releases: List[Dict[str, Any]] = []
        page = 1
        while True:
            batch = self._request_json(
                "GET",
                f"{self._repo_path(rid)}/releases",
                params={"per_page": _PAGE_SIZE, "page": page},
            )
            if not isinstance(batch, list):
                raise GitHubError(0, "Unexpected response when listing releases")
            releases.extend(batch)
            if len(batch) < _PAGE_SIZE:
                break
            page += 1
        self.logger.debug("Fetched %d release(s) from %s", len(releases), rid)
        return releases

    def download_asset(self, rid: RepositoryIdentifier, asset_id: int) -> bytes:
        response = self._send(
            "GET",
            f"{self._repo_path(rid)}/releases/assets/{asset_id}",
            accept="application/octet-stream",
        )
        return response.body

    # ------------------------------------------------------------------
    # Files and branches

    def get_file(
        self, rid: RepositoryIdentifier, branch: str, path: str
    ) -> Optional[RemoteFile]:
        """Read ``path`` on ``branch``; ``None`` if the file or branch does not exist."""
        try:
            payload = self._request_json(
                "GET",
                f"{self._repo_path(rid)}/contents/{quote(path)}",
                params={"ref": branch},
            )
        except NotFoundError:
            return None
        if not isinstance(payload, dict) or payload.get("type") != "file":
            raise GitHubError(0, f"{path} on {branch} is not a file")

        encoded = str(payload.get("content") or "")
        content = base64.b64decode(encoded).decode("utf-8")
        return RemoteFile(
            content=content,
            sha=str(payload["sha"]),
            last_modified=self._last_commit_date(rid, branch, path),
        )

    def get_branch(self, rid: RepositoryIdentifier, branch: str) -> Dict[str, Any]:
        return self._request_json("GET", f"{self._repo_path(rid)}/branches/{quote(branch)}")

    def put_file(
        self,
        rid: RepositoryIdentifier,
        *,
        branch: str,
        path: str,
        content: str,
        message: str,
        sha: str | None = None,
    ) -> Dict[str, Any]:
        """Create or update a file; ``sha`` is the expected current blob."""
        body: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if sha is not None:
            body["sha"] = sha
        return self._request_json("PUT", f"{self._repo_path(rid)}/contents/{quote(path)}", body=body)

    def create_tree(
        self, rid: RepositoryIdentifier, files: Mapping[str, str]
    ) -> Dict[str, Any]:
        tree = [
            {"path": path, "mode": "100644", "type": "blob", "content": content}
            for path, content in files.items()
        ]
        return self._request_json("POST", f"{self._repo_path(rid)}/git/trees", body={"tree": tree})

    def create_commit(
        self,
        rid: RepositoryIdentifier,
        *,
        message: str,
        tree_sha: str,
        parents: List[str],
    ) -> Dict[str, Any]:
        return self._request_json(
            "POST",
            f"{self._repo_path(rid)}/git/commits",
            body={"message": message, "tree": tree_sha, "parents": list(parents)},
        )

    def create_ref(self, rid: RepositoryIdentifier, ref: str, sha: str) -> Dict[str, Any]:
        return self._request_json(
            "POST", f"{self._repo_path(rid)}/git/refs", body={"ref": ref, "sha": sha}
        )

    # ------------------------------------------------------------------
    # Helpers

    def _last_commit_date(self, rid: RepositoryIdentifier, branch: str, path: str) -> datetime:
        commits = self._request_json(
            "GET",
            f"{self._repo_path(rid)}/commits",
            params={"sha": branch, "path": path, "per_page": 1},
        )
        if not isinstance(commits, list) or not commits:
            raise GitHubError(0, f"No commit history found for {path} on {branch}")
        commit = commits[0].get("commit") or {}
        committer = commit.get("committer") or {}
        date = committer.get("date")
        if not isinstance(date, str):
            raise GitHubError(0, f"Commit for {path} has no committer date")
        return parse_timestamp(date)

    @staticmethod
    def _repo_path(rid: RepositoryIdentifier) -> str:
        return f"/repos/{quote(rid.owner)}/{quote(rid.repo)}"

    def _request_json(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
    ) -> Any:
        response = self._send(method, path, params=params, body=body)
        if not response.body:
            return {}
        try:
            return json.loads(response.body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise GitHubError(response.status, "GitHub API returned invalid JSON") from exc

    def _send(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
        accept: str = _JSON_ACCEPT,
    ) -> HttpResponse:
        url = f"{self.api_url}{path}"
        if params:
            url = f"{url}?{urlencode(params)}"
        headers = {
            "Accept": accept,
            "X-GitHub-Api-Version": _API_VERSION,
            "User-Agent": "prosdepot",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"

        self.logger.debug("%s %s", method, url)
        response = self._transport(
            HttpRequest(method=method, url=url, headers=headers, data=data, timeout=self.request_timeout)
        )
        if response.status == 404:
            raise NotFoundError(404, self._error_detail(response) or f"{path} not found")
        if response.status >= 400:
            raise GitHubError(response.status, self._error_detail(response) or "request failed")
        return response

    @staticmethod
    def _error_detail(response: HttpResponse) -> str:
        try:
            payload = json.loads(response.body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return response.body.decode("utf-8", errors="ignore").strip()
        if isinstance(payload, dict) and isinstance(payload.get("message"), str):
            return payload["message"]
        return ""


__all__ = [
    "DEFAULT_API_URL",
    "GitHubClient",
    "GitHubError",
    "HttpRequest",
    "HttpResponse",
    "NotFoundError",
    "RemoteFile",
    "Transport",
    "urllib_transport",
]

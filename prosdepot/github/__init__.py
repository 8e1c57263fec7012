"""GitHub API access for prosdepot."""

from .client import (
    DEFAULT_API_URL,
    GitHubClient,
    GitHubError,
    HttpRequest,
    HttpResponse,
    NotFoundError,
    RemoteFile,
)

__all__ = [
    "DEFAULT_API_URL",
    "GitHubClient",
    "GitHubError",
    "HttpRequest",
    "HttpResponse",
    "NotFoundError",
    "RemoteFile",
]

"""Configuration loading for prosdepot (.prosdepot.yml, environment, CLI flags)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .git.diff import DEFAULT_MESSAGE_TEMPLATE
from .github.client import DEFAULT_API_URL
from .models import (
    IncludeStrategy,
    RepositoryIdentifier,
    get_include_strategy,
    to_repository_identifier,
)

CONFIG_FILENAME = ".prosdepot.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration is missing values or cannot be parsed."""


@dataclass
class TargetConfig:
    """Where the depot file is published."""

    repo: Optional[str] = None
    branch: str = "depot"
    path: str = "depot.json"


@dataclass
class DepotConfig:
    """Represents the settings for a depot sync run before validation."""

    root: Path
    source_repo: Optional[str] = None
    include_prereleases: str = "all"
    commit_message: str = DEFAULT_MESSAGE_TEMPLATE
    push: bool = True
    target: TargetConfig = field(default_factory=TargetConfig)
    token: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    request_timeout: float = 30.0

    def validate(self) -> "SyncSettings":
        """Parse repository names and the include strategy; raises ``ConfigError``."""
        if not self.source_repo:
            raise ConfigError(
                "No source repository configured. Pass --source-repo or set GITHUB_REPOSITORY."
            )
        try:
            source = to_repository_identifier(self.source_repo)
            target = to_repository_identifier(self.target.repo or self.source_repo)
            include_strategy = get_include_strategy(self.include_prereleases)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        if not self.target.branch:
            raise ConfigError("Target branch must not be empty")
        if not self.target.path:
            raise ConfigError("Target path must not be empty")
        return SyncSettings(
            source=source,
            target=target,
            target_branch=self.target.branch,
            target_path=self.target.path,
            include_strategy=include_strategy,
            commit_message=self.commit_message,
            push=self.push,
        )


@dataclass(frozen=True)
class SyncSettings:
    """Validated values consumed by the sync orchestrator."""

    source: RepositoryIdentifier
    target: RepositoryIdentifier
    target_branch: str
    target_path: str
    include_strategy: IncludeStrategy
    commit_message: str
    push: bool


def load_config(config_path: Path) -> DepotConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DepotConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = DepotConfig(root=root)

    source_data = _as_dict(data.get("source"))
    if source_data:
        config.source_repo = _as_str(source_data.get("repo")) or config.source_repo
        config.include_prereleases = (
            _as_str(source_data.get("include_prereleases")) or config.include_prereleases
        )

    target_data = _as_dict(data.get("target"))
    if target_data:
        config.target = TargetConfig(
            repo=_as_str(target_data.get("repo")),
            branch=_as_str(target_data.get("branch")) or config.target.branch,
            path=_as_str(target_data.get("path")) or config.target.path,
        )

    publish_data = _as_dict(data.get("publish"))
    if publish_data:
        push = _as_bool(publish_data.get("push"))
        if push is not None:
            config.push = push
        config.commit_message = (
            _as_str(publish_data.get("commit_message")) or config.commit_message
        )

    github_data = _as_dict(data.get("github"))
    if github_data:
        config.api_url = _as_str(github_data.get("api_url")) or config.api_url
        timeout = _as_float(github_data.get("request_timeout"))
        if timeout is not None:
            config.request_timeout = timeout

    return config


def apply_environment(config: DepotConfig, env: Mapping[str, str] | None = None) -> DepotConfig:
    """Fill unset values from GitHub Actions inputs and the runner environment.

    ``INPUT_*`` variables mirror the action inputs; ``GITHUB_REPOSITORY`` (the
    repository running the action) is the default source and target repository;
    without it the target falls back to the source repository.
    """
    env = os.environ if env is None else env
    updated = replace(config, target=replace(config.target))

    token = _env_value(env, "INPUT_TOKEN", "GITHUB_TOKEN")
    if token and not updated.token:
        updated.token = token
    repository = _env_value(env, "GITHUB_REPOSITORY")
    if repository and not updated.source_repo:
        updated.source_repo = repository
    if repository and not updated.target.repo:
        updated.target.repo = repository
    api_url = _env_value(env, "GITHUB_API_URL")
    if api_url and updated.api_url == DEFAULT_API_URL:
        updated.api_url = api_url

    include = _env_value(env, "INPUT_INCLUDE_PRERELEASES")
    if include:
        updated.include_prereleases = include
    message = _env_value(env, "INPUT_COMMIT_MESSAGE")
    if message:
        updated.commit_message = message
    push = _as_bool(_env_value(env, "INPUT_PUSH"))
    if push is not None:
        updated.push = push
    target_repo = _env_value(env, "INPUT_TARGET_REPO")
    if target_repo:
        updated.target.repo = target_repo
    target_branch = _env_value(env, "INPUT_TARGET_BRANCH")
    if target_branch:
        updated.target.branch = target_branch
    target_path = _env_value(env, "INPUT_TARGET_PATH")
    if target_path:
        updated.target.path = target_path
    return updated


def apply_overrides(config: DepotConfig, **overrides: Any) -> DepotConfig:
    """Apply explicit (CLI) values; ``None`` means "not given"."""
    updated = replace(config, target=replace(config.target))
    for key in ("source_repo", "include_prereleases", "commit_message", "push", "token"):
        value = overrides.get(key)
        if value is not None:
            setattr(updated, key, value)
    for key, attr in (("target_repo", "repo"), ("target_branch", "branch"), ("target_path", "path")):
        value = overrides.get(key)
        if value is not None:
            setattr(updated.target, attr, value)
    return updated


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _env_value(env: Mapping[str, str], *keys: str) -> Optional[str]:
    for key in keys:
        value = env.get(key)
        if value is not None and value.strip():
            return value.strip()
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DepotConfig",
    "SyncSettings",
    "TargetConfig",
    "apply_environment",
    "apply_overrides",
    "load_config",
]

"""CLI entrypoints for prosdepot commands."""

from __future__ import annotations

import argparse
import os
import sys
import uuid
from pathlib import Path

from .config import ConfigError, apply_environment, apply_overrides, load_config
from .github.client import GitHubClient
from .logging import configure_logging, get_logger
from .models import IncludeStrategy
from .orchestrator import Orchestrator, SyncError, SyncOutcome


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prosdepot",
        description="Build a PROS depot JSON file from GitHub release assets.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser(
        "sync",
        help="Scan releases, update the depot and publish it to the target branch.",
    )
    _add_verbose_option(sync_parser, suppress_default=True)
    sync_parser.add_argument(
        "--config",
        type=Path,
        default=Path("."),
        help="Path to .prosdepot.yml or the directory containing it.",
    )
    sync_parser.add_argument(
        "--source-repo",
        help="Repository whose releases are scanned (owner/repo). Defaults to GITHUB_REPOSITORY.",
    )
    sync_parser.add_argument(
        "--include-prereleases",
        help=f"Release filter: {', '.join(strategy.value for strategy in IncludeStrategy)}.",
    )
    sync_parser.add_argument(
        "--commit-message",
        help="Commit message template; %%MESSAGE%% is replaced by the generated message.",
    )
    sync_parser.add_argument(
        "--no-push",
        dest="push",
        action="store_const",
        const=False,
        default=None,
        help="Generate the depot without publishing it.",
    )
    sync_parser.add_argument("--target-repo", help="Repository receiving the depot file.")
    sync_parser.add_argument("--target-branch", help="Branch storing the depot file (default: depot).")
    sync_parser.add_argument("--target-path", help="Path of the depot file (default: depot.json).")
    sync_parser.add_argument("--token", help="GitHub token. Defaults to GITHUB_TOKEN.")
    sync_parser.add_argument(
        "--output",
        type=Path,
        help="Also write the generated depot JSON to this file.",
    )
    sync_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print the generated depot to stdout.",
    )
    sync_parser.add_argument("--log-file", type=Path, help="Write detailed logs to this file.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for prosdepot commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=getattr(args, "log_file", None))
    logger = get_logger("cli")

    if args.command != "sync":  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")

    try:
        config = load_config(args.config)
        config = apply_environment(config)
        config = apply_overrides(
            config,
            source_repo=args.source_repo,
            include_prereleases=args.include_prereleases,
            commit_message=args.commit_message,
            push=args.push,
            token=args.token,
            target_repo=args.target_repo,
            target_branch=args.target_branch,
            target_path=args.target_path,
        )
        settings = config.validate()
    except ConfigError as exc:
        parser.exit(2, f"prosdepot: configuration error: {exc}\n")

    if not config.token:
        logger.warning("No GitHub token configured; requests are unauthenticated")
    client = GitHubClient(
        config.token, api_url=config.api_url, request_timeout=config.request_timeout
    )
    orchestrator = Orchestrator(client)

    try:
        outcome = orchestrator.run_sync(settings)
    except SyncError as exc:
        parser.exit(1, f"prosdepot sync failed: {exc}\nRun with --verbose for more details.\n")

    _emit_outputs(outcome, output=args.output, quiet=bool(args.quiet))

    if outcome.failed:
        error = outcome.publish.error if outcome.publish else None
        parser.exit(1, f"prosdepot publish failed: {error}\n")


def _emit_outputs(outcome: SyncOutcome, *, output: Path | None, quiet: bool) -> None:
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(outcome.content + "\n", encoding="utf-8")
    github_output = os.environ.get("GITHUB_OUTPUT")
    if github_output:
        write_github_output(Path(github_output), "depot", outcome.content)
    if not quiet:
        print(outcome.content)


def write_github_output(path: Path, name: str, value: str) -> None:
    """Append a (possibly multi-line) step output using the heredoc syntax."""
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    with path.open("a", encoding="utf-8") as handle:
        handle.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")


if __name__ == "__main__":
    main(sys.argv[1:])

"""Parsing of ``template.pros`` descriptors into depot entries."""

from __future__ import annotations

import io
import json
import zipfile
import zlib
from dataclasses import dataclass, replace
from typing import Optional, Union

from pydantic import ValidationError

from .github.client import GitHubClient, GitHubError
from .logging import get_logger
from .models import DownloadableZip, RepositoryIdentifier
from .schema import BaseTemplate, ExternalTemplate, TemplateMetadata

TEMPLATE_DESCRIPTOR = "template.pros"

# zipfile surfaces damaged archives through several exception types.
_ARCHIVE_ERRORS = (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError, EOFError)

_logger = get_logger("templates")


@dataclass(frozen=True)
class ValidTemplate:
    template: ExternalTemplate


@dataclass(frozen=True)
class InvalidTemplate:
    reason: str


TemplateParseResult = Union[ValidTemplate, InvalidTemplate]


def convert_external_template(download_url: str, external_template: ExternalTemplate) -> BaseTemplate:
    """Build the depot entry for a template fetched from ``download_url``.

    The location always points at the asset that was downloaded, never at whatever
    the descriptor claims about itself. File lists and descriptor metadata are dropped.
    """
    state = external_template.state
    return BaseTemplate(
        metadata=TemplateMetadata(location=download_url),
        name=state.name,
        supported_kernels=state.supported_kernels,
        target=state.target,
        version=state.version,
    )


def parse_external_template(raw: str) -> TemplateParseResult:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        return InvalidTemplate(f"{TEMPLATE_DESCRIPTOR} is not valid JSON: {exc.msg}")
    try:
        return ValidTemplate(ExternalTemplate.model_validate(payload))
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) or "<root>" for error in exc.errors()
        )
        return InvalidTemplate(f"{TEMPLATE_DESCRIPTOR} failed validation ({fields})")


def read_template_descriptor(archive: bytes) -> Optional[str]:
    """Return the text of ``template.pros`` from zip bytes, or ``None`` if absent."""
    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            try:
                raw = zf.read(TEMPLATE_DESCRIPTOR)
            except KeyError:
                return None
    except _ARCHIVE_ERRORS as exc:
        _logger.warning("Unreadable archive: %s", exc)
        return None
    return raw.decode("utf-8", errors="replace")


class TemplateFetcher:
    """Downloads candidate assets one at a time and fills in their depot entry."""

    def __init__(self, client: GitHubClient, source: RepositoryIdentifier) -> None:
        self.client = client
        self.source = source
        self.logger = _logger

    def fetch(self, zip_: DownloadableZip) -> DownloadableZip:
        try:
            archive = self.client.download_asset(self.source, zip_.asset_id)
        except GitHubError as exc:
            self.logger.warning("Unable to download %s: %s", zip_.download_url, exc)
            return replace(zip_, result=None)

        raw = read_template_descriptor(archive)
        if raw is None:
            self.logger.warning("No %s found in %s", TEMPLATE_DESCRIPTOR, zip_.download_url)
            return replace(zip_, result=None)

        parsed = parse_external_template(raw)
        if isinstance(parsed, InvalidTemplate):
            self.logger.warning("Skipping %s: %s", zip_.download_url, parsed.reason)
            return replace(zip_, result=None)

        entry = convert_external_template(zip_.download_url, parsed.template)
        self.logger.info("Parsed %s %s from %s", entry.name, entry.version, zip_.download_url)
        return replace(zip_, result=entry)


__all__ = [
    "InvalidTemplate",
    "TEMPLATE_DESCRIPTOR",
    "TemplateFetcher",
    "TemplateParseResult",
    "ValidTemplate",
    "convert_external_template",
    "parse_external_template",
    "read_template_descriptor",
]

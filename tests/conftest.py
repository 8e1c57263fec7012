from __future__ import annotations

import pytest

from prosdepot.schema import BaseTemplate, TemplateMetadata


@pytest.fixture
def make_entry():
    """Build depot entries with sensible defaults."""

    def _make(
        location: str = "https://example.com/download",
        *,
        name: str = "example",
        version: str = "1.0.0",
        target: str = "v5",
        supported_kernels: str = "4.1.2",
    ) -> BaseTemplate:
        return BaseTemplate(
            metadata=TemplateMetadata(location=location),
            name=name,
            supported_kernels=supported_kernels,
            target=target,
            version=version,
        )

    return _make

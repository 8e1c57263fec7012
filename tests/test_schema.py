"""Tests for depot serialisation."""

from __future__ import annotations

import json

import pytest

from prosdepot.schema import BASE_TEMPLATE_TYPE, DepotFormatError, dump_depot, load_depot


def test_dump_depot_uses_wire_keys(make_entry) -> None:
    content = dump_depot([make_entry()])

    assert json.loads(content) == [
        {
            "metadata": {"location": "https://example.com/download"},
            "name": "example",
            "py/object": BASE_TEMPLATE_TYPE,
            "supported_kernels": "4.1.2",
            "target": "v5",
            "version": "1.0.0",
        }
    ]
    assert content.startswith("[\n  {")


def test_dump_empty_depot() -> None:
    assert dump_depot([]) == "[]"


def test_load_depot_reads_dumped_content(make_entry) -> None:
    entries = [make_entry("https://a"), make_entry("https://b", version="2.0.0")]

    loaded = load_depot(dump_depot(entries))

    assert [entry.location for entry in loaded] == ["https://a", "https://b"]
    assert loaded[1].version == "2.0.0"


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        "{}",
        '[{"name": "missing-fields"}]',
        '[{"metadata": {"location": "x"}, "name": "n", "py/object": "other.Type",'
        ' "supported_kernels": "1", "target": "v5", "version": "1"}]',
    ],
)
def test_load_depot_rejects_invalid_content(content: str) -> None:
    with pytest.raises(DepotFormatError):
        load_depot(content)

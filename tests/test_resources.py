"""Tests for the snapshot resources."""

from pathlib import Path

import pytest

from family_steward.protocol import ResourceNotFound
from family_steward.resources import list_resources, read_resource
from family_steward.store import SnapshotStore


def test_list_resources_points_at_the_store(store: SnapshotStore):
    result = list_resources(store)
    uris = [str(r.uri) for r in result.resources]
    assert uris == [f"file://{store.input_path}", f"file://{store.output_path}"]


def test_read_resource_returns_text(store: SnapshotStore):
    store.write_json(store.input_path, {"members": []})
    uri = f"file://{store.input_path}"
    [content] = read_resource(uri).contents
    assert content.text == store.input_path.read_text()
    assert content.mimeType == "application/json"


def test_read_resource_accepts_percent_encoded_paths(tmp_path: Path):
    path = tmp_path / "with space.json"
    path.write_text("{}")
    uri = "file://" + str(path).replace(" ", "%20")
    [content] = read_resource(uri).contents
    assert content.text == "{}"


@pytest.mark.parametrize("suffix", ["missing.json", ""])
def test_read_resource_missing(tmp_path: Path, suffix: str):
    with pytest.raises(ResourceNotFound, match="Resource not found"):
        read_resource(f"file://{tmp_path / suffix}")

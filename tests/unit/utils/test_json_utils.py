"""Tests for JSON utility functions."""

from __future__ import annotations

from datetime import date
import json
from pathlib import Path

import pytest

from mindful.core.utils.json import dumps_compact, read_json, write_json


@pytest.fixture
def temp_json_file(tmp_path):
    """Create a temporary JSON file path."""
    return tmp_path / "test.json"


def test_write_and_read_json(temp_json_file):
    """Test writing and reading JSON files."""
    data = {
        "string": "value",
        "number": 42,
        "float": 3.14,
        "bool": True,
        "list": [1, 2, 3],
        "nested": {"key": "value"},
    }

    write_json(temp_json_file, data)

    assert read_json(temp_json_file) == data


def test_write_json_creates_parent_dirs(tmp_path):
    """Test that write_json creates parent directories."""
    nested_path = tmp_path / "subdir" / "nested" / "test.json"

    write_json(nested_path, {"test": "value"})

    assert nested_path.exists()


def test_write_json_special_types(temp_json_file):
    """Paths, dates and sets are converted."""
    write_json(
        temp_json_file,
        {"path": Path("/tmp/x"), "day": date(2024, 3, 10), "tags": {"b", "a"}},
    )

    assert read_json(temp_json_file) == {"path": "/tmp/x", "day": "2024-03-10", "tags": ["a", "b"]}


def test_read_json_rejects_non_object(temp_json_file):
    temp_json_file.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError, match="Expected JSON object"):
        read_json(temp_json_file)


def test_dumps_compact():
    """Compact form has no whitespace and keeps unicode."""
    text = dumps_compact({"name": "Child’s Pose", "ids": [1, 2]})
    assert text == '{"name":"Child’s Pose","ids":[1,2]}'
    assert json.loads(text)["ids"] == [1, 2]


def test_dumps_compact_unsupported_type():
    with pytest.raises(TypeError, match="not JSON serializable"):
        dumps_compact({"value": object()})

"""Tests for hyouji.labels.importer."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from hyouji.github.labels import CREATED
from hyouji.labels.importer import (
    import_labels_from_file,
    validate_label_batch,
    validate_label_record,
)
from hyouji.labels.models import Label


@pytest.fixture
def service() -> MagicMock:
    service = MagicMock()
    service.create_label.return_value = CREATED
    return service


def write_json(tmp_path: Path, data, name: str = "labels.json") -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(data))
    return path


class TestValidateLabelRecord:
    def test_name_only(self):
        result = validate_label_record({"name": "bug"}, 0)
        assert result.ok
        assert result.label == Label(name="bug")

    def test_trims_name_and_color(self):
        result = validate_label_record({"name": "  bug ", "color": " fff "}, 0)
        assert result.label.name == "bug"
        assert result.label.color == "fff"

    def test_description_kept_verbatim(self):
        result = validate_label_record({"name": "bug", "description": ""}, 0)
        assert result.ok
        assert result.label.description == ""

    @pytest.mark.parametrize(
        "item, fragment",
        [
            ("bug", "not a valid object"),
            (None, "not a valid object"),
            ({"color": "fff"}, "missing required 'name'"),
            ({"name": ""}, "missing required 'name'"),
            ({"name": 42}, "invalid 'name'"),
            ({"name": "   "}, "empty 'name'"),
            ({"name": "bug", "color": 123}, "invalid 'color'"),
            ({"name": "bug", "color": None}, "invalid 'color'"),
            ({"name": "bug", "color": "  "}, "empty 'color'"),
            ({"name": "bug", "description": 5}, "invalid 'description'"),
        ],
    )
    def test_invalid_records(self, item, fragment):
        result = validate_label_record(item, 3)
        assert not result.ok
        assert fragment in result.error
        assert "index 3" in result.error

    def test_unknown_fields_reported(self):
        result = validate_label_record({"name": "bug", "priority": 1, "owner": "x"}, 0)
        assert result.ok
        assert result.unknown_fields == ["priority", "owner"]


class TestValidateLabelBatch:
    def test_mixed_batch(self):
        batch = validate_label_batch([{"name": "a"}, {"color": "fff"}, {"name": "b", "color": "abc123"}])
        assert [label.name for label in batch.valid] == ["a", "b"]
        assert [r.index for r in batch.invalid] == [1]

    def test_empty(self):
        batch = validate_label_batch([])
        assert batch.valid == []
        assert batch.invalid == []


class TestImportLabelsFromFile:
    def test_imports_json(self, tmp_path: Path, service: MagicMock):
        path = write_json(
            tmp_path, [{"name": "a"}, {"color": "fff"}, {"name": "b", "color": "abc123"}]
        )
        summary = import_labels_from_file(service, path)
        assert summary.attempted == 2
        assert summary.succeeded == 2
        assert summary.failed == 0
        created = [c.args[0] for c in service.create_label.call_args_list]
        assert created == [Label(name="a"), Label(name="b", color="abc123")]

    def test_imports_yaml(self, tmp_path: Path, service: MagicMock):
        path = tmp_path / "labels.yml"
        path.write_text("- name: bug\n  color: d73a4a\n- name: docs\n  description: Docs\n")
        summary = import_labels_from_file(service, path)
        assert summary.succeeded == 2
        assert service.create_label.call_args_list[1].args[0] == Label(
            name="docs", description="Docs"
        )

    def test_api_failures_counted(self, tmp_path: Path, service: MagicMock):
        service.create_label.side_effect = [CREATED, 422, None]
        path = write_json(tmp_path, [{"name": "a"}, {"name": "b"}, {"name": "c"}])
        summary = import_labels_from_file(service, path)
        assert summary.succeeded == 1
        assert summary.failed == 2

    def test_dry_run_makes_no_calls(self, tmp_path: Path, service: MagicMock):
        path = write_json(tmp_path, [{"name": "a"}, {"name": "b"}])
        summary = import_labels_from_file(service, path, dry_run=True)
        assert summary.skipped == 2
        assert summary.succeeded == 0
        service.create_label.assert_not_called()

    def test_missing_file(self, tmp_path: Path, service: MagicMock):
        summary = import_labels_from_file(service, tmp_path / "nope.json")
        assert summary.failed == 1
        service.create_label.assert_not_called()

    def test_unsupported_extension(self, tmp_path: Path, service: MagicMock):
        path = tmp_path / "labels.txt"
        path.write_text("[]")
        summary = import_labels_from_file(service, path)
        assert summary.failed == 1

    def test_invalid_json(self, tmp_path: Path, service: MagicMock):
        path = tmp_path / "labels.json"
        path.write_text("[{broken")
        summary = import_labels_from_file(service, path)
        assert summary.failed == 1
        service.create_label.assert_not_called()

    def test_invalid_yaml(self, tmp_path: Path, service: MagicMock):
        path = tmp_path / "labels.yaml"
        path.write_text("- name: [unclosed\n")
        summary = import_labels_from_file(service, path)
        assert summary.failed == 1

    def test_top_level_must_be_list(self, tmp_path: Path, service: MagicMock):
        path = write_json(tmp_path, {"name": "bug"})
        summary = import_labels_from_file(service, path)
        assert summary.failed == 1
        service.create_label.assert_not_called()

    def test_no_valid_records(self, tmp_path: Path, service: MagicMock):
        path = write_json(tmp_path, [{"color": "fff"}, "bug"])
        summary = import_labels_from_file(service, path)
        assert summary.failed == 1
        assert summary.attempted == 0
        service.create_label.assert_not_called()

    def test_uppercase_extension(self, tmp_path: Path, service: MagicMock):
        path = write_json(tmp_path, [{"name": "a"}], name="LABELS.JSON")
        summary = import_labels_from_file(service, path)
        assert summary.succeeded == 1

"""
tests/test_loader.py
Tests for reading and merging schema documents from disk.
"""

from __future__ import annotations

import json
import pathlib

import pytest

from schemashift.loader import (
    collect_schema_files,
    load_schema_file,
    load_schema_sources,
)
from schemashift.models import SchemaSourceError


class TestLoadSchemaFile:
    def test_yaml(self, schema_yaml_path: pathlib.Path, blog_schema) -> None:
        assert load_schema_file(schema_yaml_path) == blog_schema

    def test_json(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "schema.json"
        path.write_text(json.dumps({"Tag": {"columns": {"name": "string"}}}), encoding="utf-8")
        assert load_schema_file(path) == {"Tag": {"columns": {"name": "string"}}}

    def test_empty_yaml_is_empty_schema(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "empty.yml"
        path.write_text("", encoding="utf-8")
        assert load_schema_file(path) == {}

    def test_top_level_list_rejected(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "list.yml"
        path.write_text("- User\n- Post\n", encoding="utf-8")
        with pytest.raises(SchemaSourceError, match="mapping"):
            load_schema_file(path)

    def test_invalid_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.yml"
        path.write_text("User: [unclosed\n", encoding="utf-8")
        with pytest.raises(SchemaSourceError, match="Invalid YAML"):
            load_schema_file(path)

    @pytest.mark.parametrize("name", ["bad.yml", "bad.json", "bad.schema"])
    def test_undecodable_bytes(self, tmp_path: pathlib.Path, name: str) -> None:
        path = tmp_path / name
        path.write_bytes(b"Book:\n  tableName: \xff\xfe\n")
        with pytest.raises(SchemaSourceError, match="Cannot read"):
            load_schema_file(path)

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(SchemaSourceError, match="not found"):
            load_schema_file(tmp_path / "nope.yml")

    def test_directory_is_not_a_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(SchemaSourceError, match="not a file"):
            load_schema_file(tmp_path)

    def test_unknown_extension_falls_back_to_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "schema.schema"
        path.write_text("Tag:\n  columns:\n    name: string\n", encoding="utf-8")
        assert load_schema_file(path) == {"Tag": {"columns": {"name": "string"}}}


class TestLoadSchemaSources:
    def test_directory_ignores_other_files(self, schema_dir: pathlib.Path) -> None:
        files = collect_schema_files(schema_dir)
        assert [f.name for f in files] == ["01_users.yml", "02_content.yml"]

    def test_directory_merges_all_models(self, schema_dir: pathlib.Path, blog_schema) -> None:
        schema = load_schema_sources(schema_dir)
        assert set(schema) == set(blog_schema)

    def test_later_document_replaces_model(
        self, schema_dir: pathlib.Path, tmp_path: pathlib.Path, yaml_writer
    ) -> None:
        override = yaml_writer(
            tmp_path / "override.yml",
            {"Tag": {"columns": {"label": "string(20)"}}},
        )
        schema = load_schema_sources([schema_dir, override])
        assert schema["Tag"] == {"columns": {"label": "string(20)"}}

    def test_custom_pattern(self, schema_dir: pathlib.Path) -> None:
        files = collect_schema_files(schema_dir, ["02_*.yml"])
        assert [f.name for f in files] == ["02_content.yml"]

    def test_missing_source_raises(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(SchemaSourceError):
            load_schema_sources([tmp_path / "missing.yml"])

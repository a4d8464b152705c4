"""
tests/conftest.py
Shared fixtures for the schemashift test suite.

No mocking libraries are used; file I/O happens inside pytest's
``tmp_path`` directories.
"""

from __future__ import annotations

import copy
import pathlib
from typing import Any, Dict

import pytest
import yaml


# ---------------------------------------------------------------------------
# Raw schema data
# ---------------------------------------------------------------------------

BLOG_SCHEMA: Dict[str, Any] = {
    "User": {
        "tableName": "app.users",
        "columns": {
            "id": {"type": "integer(4)", "primary": True, "autoincrement": True},
            "username": {"type": "string(64)", "notnull": True, "unique": True},
            "email_address": {"type": "string(255)", "name": "email"},
            "created_at": "timestamp",
        },
        "indexes": {
            "username_idx": {"fields": ["username"], "type": "unique"},
            "created_idx": {"fields": ["created_at"]},
        },
        "relations": {
            "Profile": {
                "local": "id",
                "foreign": "user_id",
                "type": "one",
                "foreignType": "one",
            },
        },
    },
    "Profile": {
        "columns": {
            "user_id": "integer",
            "bio": "text",
        },
        "relations": {
            "User": {"onDelete": "CASCADE"},
        },
    },
    "Post": {
        "tableName": "posts",
        "columns": {
            "id": {
                "type": "integer",
                "primary": True,
                "sequence": {"name": "post_seq", "size": 10, "value": 1},
            },
            "title": "string(200)",
            "body": {"type": "clob", "length": 65535},
            "author_id": "integer",
        },
        "relations": {
            "Author": {
                "class": "User",
                "local": "author_id",
                "foreignAlias": "posts",
            },
            "Tags": {
                "class": "Tag",
                "refClass": "PostTag",
                "local": "post_id",
                "foreign": "tag_id",
            },
        },
    },
    "Tag": {
        "columns": {"name": "string(50)"},
        "relations": {
            "Posts": {
                "class": "Post",
                "type": "many",
                "foreignType": "many",
                "local": "tag_id",
                "foreign": "post_id",
            },
        },
    },
    "PostTag": {
        "tableName": "post_tag",
        "columns": {
            "post_id": {"type": "integer", "primary": True},
            "tag_id": {"type": "integer", "primary": True},
        },
    },
}


@pytest.fixture()
def blog_schema() -> Dict[str, Any]:
    """A deep copy so each test can mutate freely."""
    return copy.deepcopy(BLOG_SCHEMA)


@pytest.fixture()
def broken_schema(blog_schema: Dict[str, Any]) -> Dict[str, Any]:
    """Blog schema plus one model whose sequence has an unsupported shape."""
    blog_schema["Broken"] = {
        "columns": {"id": {"type": "integer", "primary": True, "sequence": 42}},
    }
    return blog_schema


# ---------------------------------------------------------------------------
# File fixtures
# ---------------------------------------------------------------------------


def write_yaml(path: pathlib.Path, data: Any) -> pathlib.Path:
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, default_flow_style=False, sort_keys=False)
    return path


@pytest.fixture()
def schema_dir(blog_schema: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """The blog schema split over two YAML files in one directory."""
    directory = tmp_path / "schema"
    directory.mkdir()
    names = list(blog_schema)
    write_yaml(directory / "01_users.yml", {n: blog_schema[n] for n in names[:2]})
    write_yaml(directory / "02_content.yml", {n: blog_schema[n] for n in names[2:]})
    (directory / "notes.txt").write_text("not a schema", encoding="utf-8")
    return directory


@pytest.fixture()
def schema_yaml_path(blog_schema: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """The whole blog schema in a single YAML file."""
    return write_yaml(tmp_path / "schema.yml", blog_schema)


@pytest.fixture()
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    return tmp_path / "mappings"


@pytest.fixture()
def yaml_writer():
    """``write_yaml(path, data)`` for tests that build their own files."""
    return write_yaml

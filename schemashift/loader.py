# File: schemashift/loader.py
"""
schemashift - Schema Source Loader
===================================
Turns a file, a directory of files, or a list of either into one mapping
of model name → raw model description.

Documents are merged in the order given (directory contents in sorted
order).  The merge is shallow: a model declared again in a later document
replaces the earlier declaration as a whole.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Set, Tuple, Union

import yaml

from schemashift.models import SchemaSourceError

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemashift.loader")

PathLike = Union[str, Path]

DEFAULT_PATTERNS: Tuple[str, ...] = ("*.yml", "*.yaml")


# ---------------------------------------------------------------------------
# Single-file loaders
# ---------------------------------------------------------------------------


def _as_mapping(data: Any, path: Path, kind: str) -> Dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SchemaSourceError(
            f"Expected a {kind} mapping at top level of {path}, "
            f"got {type(data).__name__}."
        )
    return data


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SchemaSourceError(f"Cannot read {path}: {exc}") from exc


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file."""
    text: str = _read_text(path)
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SchemaSourceError(f"Invalid JSON in {path}: {exc}") from exc
    return _as_mapping(data, path, "JSON")


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file.  An empty document is an empty schema."""
    text: str = _read_text(path)
    try:
        data: Any = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SchemaSourceError(f"Invalid YAML in {path}: {exc}") from exc
    return _as_mapping(data, path, "YAML")


def load_schema_file(path: PathLike) -> Dict[str, Any]:
    """
    Load a single schema document, dispatching on the file extension.

    Unknown extensions are tried as JSON first, then YAML.

    Raises:
        SchemaSourceError: If the file is missing, not a file, or unparsable.
    """
    path = Path(path)

    if not path.exists():
        raise SchemaSourceError(f"Schema source not found: {path}")
    if not path.is_file():
        raise SchemaSourceError(f"Schema path is not a file: {path}")

    suffix: str = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except SchemaSourceError:
        return _load_yaml_file(path)


# ---------------------------------------------------------------------------
# Directories and source lists
# ---------------------------------------------------------------------------


def collect_schema_files(
    directory: PathLike, patterns: Iterable[str] = DEFAULT_PATTERNS
) -> List[Path]:
    """Files in *directory* matching any of *patterns*, sorted by name."""
    directory = Path(directory)
    found: Set[Path] = set()
    for pattern in patterns:
        found.update(p for p in directory.glob(pattern) if p.is_file())
    files: List[Path] = sorted(found)
    logger.debug("Found %d schema file(s) in %s.", len(files), directory)
    return files


def load_schema_sources(
    sources: Union[PathLike, Sequence[PathLike]],
    patterns: Iterable[str] = DEFAULT_PATTERNS,
) -> Dict[str, Any]:
    """
    Load and shallow-merge every schema document reachable from *sources*.

    Raises:
        SchemaSourceError: If any source is missing or unparsable.
    """
    if isinstance(sources, (str, Path)):
        sources = [sources]
    patterns = tuple(patterns)

    schema: Dict[str, Any] = {}
    for source in sources:
        path: Path = Path(source)
        if path.is_dir():
            files: List[Path] = collect_schema_files(path, patterns)
            if not files:
                logger.warning("No schema files matching %s in %s.", patterns, path)
        else:
            files = [path]

        for file_path in files:
            document: Dict[str, Any] = load_schema_file(file_path)
            overridden: List[str] = [str(name) for name in document if name in schema]
            if overridden:
                logger.info(
                    "%s overrides model(s): %s.", file_path.name, ", ".join(overridden)
                )
            schema.update(document)
            logger.debug("Loaded %d model(s) from %s.", len(document), file_path)

    logger.info("Loaded %d model(s) from %d source(s).", len(schema), len(sources))
    return schema


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DEFAULT_PATTERNS",
    "load_schema_file",
    "collect_schema_files",
    "load_schema_sources",
]

logger.debug("schemashift.loader loaded.")

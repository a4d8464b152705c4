# File: schemashift/exporters.py
"""
schemashift - Mapping File Exporter
====================================

Responsible for:
    1. Rendering each ``ClassMetadata`` as a YAML or JSON mapping document.
    2. Writing one ``<Model>.dcm.<ext>`` file per model, atomically
       (write-to-temp then rename).
    3. Producing a manifest with checksums for reproducibility.

A failed write is recorded and the remaining models are still written;
already-written files are never rolled back.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

import yaml

from schemashift.models import ClassMetadata, ConversionConfig, OutputFormat
from schemashift.utils import (
    Timer,
    count_lines,
    ensure_directory,
    is_safe_filename_stem,
    sha256_hex,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemashift.exporters")

MANIFEST_FILENAME: str = "manifest.json"


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_metadata(
    metadata: ClassMetadata,
    fmt: OutputFormat = OutputFormat.YAML,
    indent_size: int = 2,
) -> str:
    """Render one model as ``{model_name: mapping}`` text."""
    document: Dict[str, Any] = {metadata.name: metadata.to_mapping()}
    if OutputFormat(fmt) == OutputFormat.JSON:
        return json.dumps(document, indent=indent_size, ensure_ascii=False) + "\n"
    return yaml.safe_dump(
        document,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
        indent=indent_size,
    )


# ---------------------------------------------------------------------------
# Export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    model_name: str
    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """Manifest of every exported mapping file.  Serialisable to JSON."""

    tool_version: str = ""
    output_format: str = ""
    export_timestamp: str = ""
    output_directory: str = ""
    total_files: int = 0
    total_bytes: int = 0
    files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tool_version": self.tool_version,
            "output_format": self.output_format,
            "export_timestamp": self.export_timestamp,
            "output_directory": self.output_directory,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "files": [
                {
                    "model": f.model_name,
                    "relative_path": f.relative_path,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Returned by ``MetadataExporter.export()``."""

    success: bool
    manifest: ExportManifest
    errors: Tuple[str, ...]
    warnings: Tuple[str, ...]
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# MetadataExporter
# ---------------------------------------------------------------------------


class MetadataExporter:
    """
    Writes converted metadata to a directory of mapping files.

    Usage::

        exporter = MetadataExporter(config, output_dir=Path("./mappings"))
        result = exporter.export(metadatas)
        print(result.manifest.to_json())

    Not thread-safe; use one exporter per output directory.
    """

    def __init__(self, config: ConversionConfig, output_dir: Path) -> None:
        self._config: ConversionConfig = config
        self._output_dir: Path = Path(output_dir).resolve()

        self._errors: List[str] = []
        self._warnings: List[str] = []
        self._file_records: List[FileRecord] = []

        logger.debug(
            "MetadataExporter initialised: output_dir=%s, format=%s.",
            self._output_dir,
            self._config.output_format,
        )

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(self, metadatas: Sequence[ClassMetadata]) -> ExportResult:
        self._errors = []
        self._warnings = []
        self._file_records = []

        with Timer("export") as timer:
            try:
                self._pre_export_cleanup()
                ensure_directory(self._output_dir)
                for metadata in metadatas:
                    self._write_metadata(metadata)
                if self._config.write_manifest:
                    self._write_manifest_file()
            except OSError as exc:
                error_msg: str = f"Fatal export error: {type(exc).__name__}: {exc}"
                self._errors.append(error_msg)
                logger.error(error_msg, exc_info=True)

        manifest: ExportManifest = self._build_manifest()
        success: bool = len(self._errors) == 0

        if success:
            logger.info(
                "Export completed: %d files, %d bytes, %.3fs.",
                manifest.total_files,
                manifest.total_bytes,
                timer.elapsed,
            )
        else:
            logger.error(
                "Export completed with %d error(s) in %.3fs.",
                len(self._errors),
                timer.elapsed,
            )

        return ExportResult(
            success=success,
            manifest=manifest,
            errors=tuple(self._errors),
            warnings=tuple(self._warnings),
            elapsed_seconds=timer.elapsed,
        )

    def filename_for(self, metadata: ClassMetadata) -> str:
        return f"{metadata.name}{self._config.file_extension}"

    # -----------------------------------------------------------------
    # Internal: directory management
    # -----------------------------------------------------------------

    def _pre_export_cleanup(self) -> None:
        if not self._config.clean_output or not self._output_dir.exists():
            return

        logger.info("Cleaning output directory: %s", self._output_dir)
        for item in self._output_dir.iterdir():
            if item.name in {".git", ".gitignore", ".gitkeep"}:
                continue
            try:
                if item.is_dir():
                    shutil.rmtree(item)
                else:
                    item.unlink()
            except OSError as exc:
                warning_msg: str = f"Could not remove {item}: {exc}"
                self._warnings.append(warning_msg)
                logger.warning(warning_msg)

    # -----------------------------------------------------------------
    # Internal: file writing
    # -----------------------------------------------------------------

    def _write_metadata(self, metadata: ClassMetadata) -> None:
        rel_path: str = self.filename_for(metadata)
        full_path: Path = self._output_dir / rel_path

        if not is_safe_filename_stem(metadata.name):
            error_msg: str = (
                f"Model name {metadata.name!r} cannot be used as a file name."
            )
            self._errors.append(error_msg)
            logger.error(error_msg)
            return

        if full_path.exists() and not self._config.overwrite_existing:
            error_msg = (
                f"Refusing to overwrite existing file {rel_path} "
                f"(enable overwrite_existing)."
            )
            self._errors.append(error_msg)
            logger.error(error_msg)
            return

        content: str = render_metadata(
            metadata, self._config.output_format, self._config.indent_size
        )
        try:
            self._file_records.append(
                self._write_single_file(full_path, content, rel_path, metadata.name)
            )
        except OSError as exc:
            error_msg = f"Failed to write {rel_path}: {type(exc).__name__}: {exc}"
            self._errors.append(error_msg)
            logger.error(error_msg)

    def _write_single_file(
        self,
        full_path: Path,
        content: str,
        rel_path: str,
        model_name: str,
    ) -> FileRecord:
        encoded: bytes = content.encode("utf-8")
        self._atomic_write(full_path, encoded)

        logger.debug("Wrote file: %s (%d bytes).", rel_path, len(encoded))

        return FileRecord(
            model_name=model_name,
            relative_path=rel_path,
            absolute_path=str(full_path),
            size_bytes=len(encoded),
            line_count=count_lines(content),
            sha256=sha256_hex(content),
        )

    @staticmethod
    def _atomic_write(target_path: Path, data: bytes) -> None:
        """
        Write data to target_path through a temp file in the same directory,
        then ``os.replace`` it into place.
        """
        fd, tmp_path = tempfile.mkstemp(
            dir=str(target_path.parent),
            prefix=f".{target_path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, str(target_path))
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    # -----------------------------------------------------------------
    # Internal: manifest
    # -----------------------------------------------------------------

    def _build_manifest(self) -> ExportManifest:
        import schemashift

        return ExportManifest(
            tool_version=schemashift.__version__,
            output_format=OutputFormat(self._config.output_format).value,
            export_timestamp=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            output_directory=str(self._output_dir),
            total_files=len(self._file_records),
            total_bytes=sum(r.size_bytes for r in self._file_records),
            files=list(self._file_records),
        )

    def _write_manifest_file(self) -> None:
        manifest_path: Path = self._output_dir / MANIFEST_FILENAME
        content: str = self._build_manifest().to_json(self._config.indent_size)
        try:
            self._atomic_write(manifest_path, content.encode("utf-8"))
            logger.debug("Wrote manifest to %s.", manifest_path)
        except OSError as exc:
            self._warnings.append(f"Could not write manifest: {exc}")
            logger.warning("Failed to write manifest: %s", exc)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MANIFEST_FILENAME",
    "render_metadata",
    "MetadataExporter",
    "ExportManifest",
    "ExportResult",
    "FileRecord",
]

logger.debug("schemashift.exporters loaded.")

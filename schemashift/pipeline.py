# File: schemashift/pipeline.py
"""
schemashift - Conversion Pipeline (Orchestrator)
=================================================

Connects the collaborators around the converter:

    Schema sources → Load & merge → Convert per model → Export mapping files

``SchemaConverter`` is the backend for the CLI.  Every step records a
``StepMetric``; errors land in the ``ConversionReport`` instead of
escaping, and the report gives the final pass/fail verdict.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from schemashift.converter import ConversionResult, convert_schema
from schemashift.exporters import ExportResult, MetadataExporter
from schemashift.loader import PathLike, load_schema_sources
from schemashift.models import (
    ClassMetadata,
    ConversionConfig,
    ModelConversionError,
    SchemaSourceError,
)
from schemashift.utils import Timer

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemashift.pipeline")


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class StepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class ConversionReport:
    """Outcome of ``SchemaConverter.run()``."""

    success: bool = False
    output_directory: str = ""

    total_models: int = 0
    total_files: int = 0
    total_elapsed_seconds: float = 0.0

    metadatas: List[ClassMetadata] = field(default_factory=list)
    step_metrics: List[StepMetric] = field(default_factory=list)
    load_errors: List[str] = field(default_factory=list)
    conversion_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)
    failed_models: List[str] = field(default_factory=list)

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "SUCCESS" if self.success else "FAILED"
        lines.append("=" * 60)
        lines.append("  schemashift — Conversion Report")
        lines.append("=" * 60)
        lines.append(f"  Status:           {status}")
        lines.append(f"  Output:           {self.output_directory or '-'}")
        lines.append(f"  Models converted: {self.total_models}")
        lines.append(f"  Files written:    {self.total_files}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append("─" * 60)

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<22s} "
                    f"{step.elapsed_seconds:>7.3f}s  {step.detail}"
                )

        for title, items in (
            ("Load Errors", self.load_errors),
            ("Conversion Errors", self.conversion_errors),
            ("Export Errors", self.export_errors),
        ):
            if items:
                lines.append("─" * 60)
                lines.append(f"  {title} ({len(items)}):")
                for err in items:
                    lines.append(f"    ✗ {err}")

        if self.failed_models:
            lines.append("─" * 60)
            lines.append(f"  Failed Models ({len(self.failed_models)}):")
            for name in self.failed_models:
                lines.append(f"    ⊘ {name}")

        lines.append("=" * 60)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# SchemaConverter: orchestrator
# ---------------------------------------------------------------------------


class SchemaConverter:
    """
    Load → convert → export, driven by a ``ConversionConfig``.

    Usage::

        converter = SchemaConverter(ConversionConfig(output_format="json"))
        report = converter.run(["schema/"], output_dir=Path("./mappings"))
        print(report.summary())

    Passing ``output_dir=None`` converts without writing anything; the
    records are available on ``report.metadatas``.
    """

    def __init__(self, config: Optional[ConversionConfig] = None) -> None:
        self._config: ConversionConfig = config or ConversionConfig()
        logger.debug("SchemaConverter initialised: %r.", self._config)

    @property
    def config(self) -> ConversionConfig:
        return self._config

    def run(
        self,
        sources: Union[PathLike, Sequence[PathLike]],
        output_dir: Optional[Path] = None,
    ) -> ConversionReport:
        report: ConversionReport = ConversionReport()
        if output_dir is not None:
            report.output_directory = str(Path(output_dir).resolve())

        schema: Optional[Dict[str, Any]] = self._step_load(sources, report)
        if schema is None:
            return self._finalise_report(report)

        result: Optional[ConversionResult] = self._step_convert(schema, report)
        if result is None:
            return self._finalise_report(report)

        report.metadatas = list(result.metadatas)
        report.total_models = len(result.metadatas)

        if output_dir is not None and result.metadatas:
            self._step_export(result.metadatas, Path(output_dir), report)

        return self._finalise_report(report)

    # -----------------------------------------------------------------
    # Pipeline steps
    # -----------------------------------------------------------------

    def _step_load(
        self,
        sources: Union[PathLike, Sequence[PathLike]],
        report: ConversionReport,
    ) -> Optional[Dict[str, Any]]:
        with Timer("load_schema") as t:
            try:
                schema: Dict[str, Any] = load_schema_sources(
                    sources, self._config.file_patterns
                )
            except SchemaSourceError as exc:
                report.load_errors.append(str(exc))
                report.step_metrics.append(StepMetric(
                    step_name="Load Schema",
                    success=False,
                    elapsed_seconds=t.elapsed,
                    detail=str(exc),
                ))
                logger.error("Failed to load schema: %s", exc)
                return None

        report.step_metrics.append(StepMetric(
            step_name="Load Schema",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=f"{len(schema)} model(s)",
        ))
        return schema

    def _step_convert(
        self,
        schema: Dict[str, Any],
        report: ConversionReport,
    ) -> Optional[ConversionResult]:
        with Timer("convert") as t:
            try:
                result: ConversionResult = convert_schema(
                    schema, strict=self._config.strict
                )
            except ModelConversionError as exc:
                report.conversion_errors.append(str(exc))
                report.failed_models.append(exc.model_name)
                report.step_metrics.append(StepMetric(
                    step_name="Convert Models",
                    success=False,
                    elapsed_seconds=t.elapsed,
                    detail=f"aborted at '{exc.model_name}'",
                ))
                logger.error("%s", exc)
                return None

        for model_name, reason in result.failures:
            report.conversion_errors.append(f"{model_name}: {reason}")
            report.failed_models.append(model_name)

        report.step_metrics.append(StepMetric(
            step_name="Convert Models",
            success=result.success,
            elapsed_seconds=t.elapsed,
            detail=(
                f"{len(result.metadatas)} converted, "
                f"{len(result.failures)} failed"
            ),
        ))
        return result

    def _step_export(
        self,
        metadatas: List[ClassMetadata],
        output_dir: Path,
        report: ConversionReport,
    ) -> None:
        exporter: MetadataExporter = MetadataExporter(self._config, output_dir)
        export_result: ExportResult = exporter.export(metadatas)

        report.total_files = export_result.manifest.total_files
        report.export_errors.extend(export_result.errors)

        report.step_metrics.append(StepMetric(
            step_name="Export Mappings",
            success=export_result.success,
            elapsed_seconds=export_result.elapsed_seconds,
            detail=(
                f"{export_result.manifest.total_files} files, "
                f"{export_result.manifest.total_bytes:,} bytes"
            ),
        ))

    def _finalise_report(self, report: ConversionReport) -> ConversionReport:
        report.total_elapsed_seconds = sum(
            step.elapsed_seconds for step in report.step_metrics
        )
        report.success = not (
            report.load_errors or report.conversion_errors or report.export_errors
        )
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SchemaConverter",
    "ConversionReport",
    "StepMetric",
]

logger.debug("schemashift.pipeline loaded.")

# File: schemashift/__init__.py
"""
schemashift — Legacy Schema to Mapping Metadata Converter
===========================================================

Reads legacy declarative schema documents (models with ``tableName``,
``columns``, ``indexes`` and ``relations``) and produces one normalized
``ClassMetadata`` record per model: table mapping, field mappings, id
generation strategy, indexes/unique constraints and association mappings
with inferred cardinality.

Architecture overview::

    ┌──────────────┐     ┌────────────────┐     ┌────────────────┐
    │  CLI / Entry │────▶│ SchemaConverter │────▶│   converter    │
    │   (cli.py)   │     │  (pipeline.py)  │     │ (4 stages/model)│
    └──────────────┘     └───────┬────────┘     └────────────────┘
                                 │
                    ┌────────────┼────────────┐
                    ▼            ▼            ▼
             ┌──────────┐ ┌───────────┐ ┌───────────┐
             │  loader  │ │  models   │ │ exporters │
             └──────────┘ └───────────┘ └───────────┘

Usage::

    # As a library
    from schemashift import convert_model
    metadata = convert_model("Book", {"columns": {"title": "string(255)"}})

    # From the command line
    python -m schemashift schema/ -o ./mappings --verbose
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from schemashift.models import (
    AssociationMapping,
    Cardinality,
    ClassMetadata,
    ConversionConfig,
    DuplicateFieldError,
    FieldMapping,
    IdGeneratorType,
    IndexDefinition,
    JoinColumn,
    ModelConversionError,
    OutputFormat,
    SchemaConversionError,
    SchemaSourceError,
    SequenceDefinitionError,
    SequenceGeneratorDefinition,
    TableDescriptor,
)
from schemashift.converter import (
    ConversionResult,
    convert_model,
    convert_schema,
    infer_cardinality,
    resolve_column,
    resolve_relation,
    split_table_name,
)
from schemashift.loader import load_schema_file, load_schema_sources
from schemashift.exporters import MetadataExporter, ExportResult, render_metadata
from schemashift.pipeline import ConversionReport, SchemaConverter

__all__: list[str] = [
    "__version__",
    "__license__",
    # Orchestration
    "SchemaConverter",
    "ConversionReport",
    "ConversionResult",
    "convert_model",
    "convert_schema",
    "infer_cardinality",
    "resolve_column",
    "resolve_relation",
    "split_table_name",
    # Models
    "AssociationMapping",
    "Cardinality",
    "ClassMetadata",
    "ConversionConfig",
    "FieldMapping",
    "IdGeneratorType",
    "IndexDefinition",
    "JoinColumn",
    "OutputFormat",
    "SequenceGeneratorDefinition",
    "TableDescriptor",
    # Errors
    "SchemaConversionError",
    "SequenceDefinitionError",
    "DuplicateFieldError",
    "ModelConversionError",
    "SchemaSourceError",
    # Loading / export
    "load_schema_file",
    "load_schema_sources",
    "MetadataExporter",
    "ExportResult",
    "render_metadata",
]

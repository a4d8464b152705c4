# File: schemashift/models.py
"""
schemashift - Core Data Models
===============================
Pydantic V2 models for both sides of the conversion:

    Raw legacy description  →  Resolved (defaulted)  →  Normalized metadata

Raw models mirror the legacy declarative format: every attribute is
optional and unknown keys are ignored.  ``ClassMetadata`` is the metadata
sink that the converter writes into, one instance per model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemashift.models")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class SchemaConversionError(ValueError):
    """Base class for every error raised by schemashift."""


class SequenceDefinitionError(SchemaConversionError):
    """A column's ``sequence`` is neither a name nor a mapping with ``name``."""

    def __init__(self, column: str, value: Any) -> None:
        self.column: str = column
        self.value: Any = value
        super().__init__(
            f"Column '{column}' has an invalid sequence definition "
            f"({type(value).__name__}: {value!r}); expected a sequence name "
            f"or a mapping with a 'name' key."
        )


class DuplicateFieldError(SchemaConversionError):
    """The same field name was mapped twice on one model."""

    def __init__(self, model_name: str, field_name: str) -> None:
        self.model_name: str = model_name
        self.field_name: str = field_name
        super().__init__(
            f"Field '{field_name}' is already mapped on model '{model_name}'."
        )


class ModelConversionError(SchemaConversionError):
    """Converting a single model failed; ``model_name`` says which one."""

    def __init__(self, model_name: str, reason: str) -> None:
        self.model_name: str = model_name
        self.reason: str = reason
        super().__init__(f"Model '{model_name}' could not be converted: {reason}")


class SchemaSourceError(SchemaConversionError):
    """A schema source could not be located or parsed."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class IdGeneratorType(str, Enum):
    """Primary-key value generation strategies."""

    NONE = "none"
    AUTO = "auto"
    SEQUENCE = "sequence"


class Cardinality(str, Enum):
    """Association cardinalities understood by the metadata sink."""

    ONE_TO_ONE = "one_to_one"
    ONE_TO_MANY = "one_to_many"
    MANY_TO_MANY = "many_to_many"


class OutputFormat(str, Enum):
    """Serialisation formats for exported mapping files."""

    YAML = "yaml"
    JSON = "json"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)

# Legacy documents carry many attributes this layer does not interpret.
_RAW_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    coerce_numbers_to_str=True,
    frozen=True,
    extra="ignore",
)


# ---------------------------------------------------------------------------
# Raw legacy input
# ---------------------------------------------------------------------------


class RawColumn(BaseModel):
    """
    One declared column, after a bare type string has been lifted into
    ``{"type": ...}``.  Values are kept as declared; presence means
    "given and not null".
    """

    model_config = _RAW_CONFIG

    type: Optional[str] = None
    name: Optional[str] = None
    alias: Optional[str] = None
    primary: Any = None
    length: Any = None
    precision: Any = None
    scale: Any = None
    unique: Any = None
    options: Any = None
    notnull: Any = None
    version: Any = None
    autoincrement: Any = None
    sequence: Any = None

    @classmethod
    def from_declaration(cls, declaration: Any) -> "RawColumn":
        """Accept a bare type string, an attribute mapping or ``None``."""
        if isinstance(declaration, str):
            return cls(type=declaration)
        if declaration is None:
            return cls()
        return cls.model_validate(declaration)


class RawIndex(BaseModel):
    """A declared index.  ``fields`` is passed through uninterpreted."""

    model_config = _RAW_CONFIG

    field_list: Any = Field(default=None, alias="fields")
    type: Optional[str] = None


class RawRelation(BaseModel):
    """A declared relation with legacy camelCase keys."""

    model_config = _RAW_CONFIG

    alias: Optional[str] = None
    class_name: Optional[str] = Field(default=None, alias="class")
    local: Optional[str] = None
    foreign: Optional[str] = None
    foreign_alias: Optional[str] = Field(default=None, alias="foreignAlias")
    type: Optional[str] = None
    foreign_type: Optional[str] = Field(default=None, alias="foreignType")
    ref_class: Optional[str] = Field(default=None, alias="refClass")
    on_delete: Optional[str] = Field(default=None, alias="onDelete")
    on_update: Optional[str] = Field(default=None, alias="onUpdate")


class RawModel(BaseModel):
    """Top-level description of one legacy model."""

    model_config = _RAW_CONFIG

    table_name: Optional[str] = Field(default=None, alias="tableName")
    columns: Optional[Dict[str, Any]] = None
    indexes: Optional[Dict[str, Any]] = None
    relations: Optional[Dict[str, Any]] = None


# ---------------------------------------------------------------------------
# Sequence definitions (tagged union)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NamedSequence:
    """``sequence: users_seq``"""

    name: str
    kind: Literal["named"] = "named"


@dataclass(frozen=True, slots=True)
class DetailedSequence:
    """``sequence: {name: users_seq, size: 10, value: 1}``"""

    name: str
    size: Any = None
    value: Any = None
    kind: Literal["detailed"] = "detailed"


SequenceSpec = Union[NamedSequence, DetailedSequence]


def parse_sequence(column: str, raw: Any) -> SequenceSpec:
    """
    Turn a declared ``sequence`` attribute into a ``SequenceSpec``.

    Raises:
        SequenceDefinitionError: For any shape other than a non-empty
            string or a mapping that carries a non-empty ``name``.
    """
    if isinstance(raw, str):
        if raw:
            return NamedSequence(name=raw)
        raise SequenceDefinitionError(column, raw)
    if isinstance(raw, dict) and raw.get("name") not in (None, ""):
        return DetailedSequence(
            name=str(raw["name"]),
            size=raw.get("size"),
            value=raw.get("value"),
        )
    raise SequenceDefinitionError(column, raw)


# ---------------------------------------------------------------------------
# Resolved (fully defaulted) declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ResolvedColumn:
    """A column with every naming default applied."""

    key: str
    field_name: str
    column_name: str
    type: Optional[str]
    length: Any
    passthrough: Tuple[Tuple[str, Any], ...]
    is_id: bool
    autoincrement: bool
    sequence: Optional[SequenceSpec]


@dataclass(frozen=True, slots=True)
class ResolvedRelation:
    """A relation with the alias/class/local/foreign/foreignAlias chain applied."""

    key: str
    alias: str
    class_name: str
    local: str
    foreign: str
    foreign_alias: str
    type: str
    foreign_type: str
    ref_class: Optional[str]
    on_delete: Optional[str]
    on_update: Optional[str]


# ---------------------------------------------------------------------------
# Normalized metadata
# ---------------------------------------------------------------------------


class IndexDefinition(BaseModel):
    """A named index; ``columns`` is exactly what was declared."""

    model_config = _SHARED_CONFIG

    columns: Any = Field(default=None, description="Declared field list.")


class TableDescriptor(BaseModel):
    """Primary table of a model."""

    model_config = _SHARED_CONFIG

    name: Optional[str] = Field(
        default=None, description="Table name (None = sink default)."
    )
    schema_name: Optional[str] = Field(
        default=None, alias="schema", description="Database schema."
    )
    indexes: Dict[str, IndexDefinition] = Field(
        default_factory=dict, description="Named indexes in declaration order."
    )
    unique_constraints: List[Any] = Field(
        default_factory=list,
        alias="uniqueConstraints",
        description="Column sets of unique indexes.",
    )


class FieldMapping(BaseModel):
    """One persisted attribute of a model."""

    model_config = _SHARED_CONFIG

    field_name: str = Field(..., min_length=1, alias="fieldName")
    column_name: str = Field(..., min_length=1, alias="columnName")
    type: Optional[str] = Field(default=None, description="Declared column type.")
    length: Any = None
    precision: Any = None
    scale: Any = None
    unique: Any = None
    options: Any = None
    notnull: Any = None
    version: Any = None
    id: bool = Field(default=False, description="Part of the identifier?")

    def __repr__(self) -> str:
        pk_flag: str = " ID" if self.id else ""
        return f"<Field {self.field_name} → {self.column_name} {self.type}{pk_flag}>"


class SequenceGeneratorDefinition(BaseModel):
    """Parameters of a database sequence used for id generation."""

    model_config = _SHARED_CONFIG

    sequence_name: str = Field(..., min_length=1, alias="sequenceName")
    allocation_size: Any = Field(default=None, alias="allocationSize")
    initial_value: Any = Field(default=None, alias="initialValue")

    @classmethod
    def from_spec(cls, spec: SequenceSpec) -> "SequenceGeneratorDefinition":
        if isinstance(spec, DetailedSequence):
            return cls(
                sequence_name=spec.name,
                allocation_size=spec.size,
                initial_value=spec.value,
            )
        return cls(sequence_name=spec.name)


class JoinColumn(BaseModel):
    """Owning-side join column of an association."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., description="Local join column.")
    referenced_column_name: str = Field(..., alias="referencedColumnName")
    on_delete: Optional[str] = Field(default=None, alias="onDelete")
    on_update: Optional[str] = Field(default=None, alias="onUpdate")


class AssociationMapping(BaseModel):
    """Relationship between two models, tagged with its cardinality."""

    model_config = _SHARED_CONFIG

    field_name: str = Field(..., min_length=1, alias="fieldName")
    target_entity: str = Field(..., min_length=1, alias="targetEntity")
    mapped_by: str = Field(..., alias="mappedBy")
    cardinality: Cardinality = Field(..., description="Inferred cardinality.")
    join_columns: List[JoinColumn] = Field(
        default_factory=list, alias="joinColumns"
    )

    def __repr__(self) -> str:
        return (
            f"<Association {self.field_name} ({self.cardinality}) "
            f"→ {self.target_entity}>"
        )


class ClassMetadata(BaseModel):
    """
    Normalized metadata record for one model, and the sink the converter
    writes into.

    Field and association names share one namespace; mapping a name twice
    raises ``DuplicateFieldError``.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Model name.")
    table: TableDescriptor = Field(default_factory=TableDescriptor)
    field_mappings: List[FieldMapping] = Field(
        default_factory=list, alias="fieldMappings"
    )
    id_generator_type: IdGeneratorType = Field(
        default=IdGeneratorType.NONE, alias="idGeneratorType"
    )
    sequence_generator_definition: Optional[SequenceGeneratorDefinition] = Field(
        default=None, alias="sequenceGeneratorDefinition"
    )
    association_mappings: List[AssociationMapping] = Field(
        default_factory=list, alias="associationMappings"
    )

    # -- Computed helpers ---------------------------------------------------

    @computed_field  # type: ignore[misc]
    @property
    def identifier(self) -> List[str]:
        return [f.field_name for f in self.field_mappings if f.id]

    @computed_field  # type: ignore[misc]
    @property
    def resolved_table_name(self) -> str:
        """Declared table name, falling back to the model name."""
        return self.table.name or self.name

    def get_field(self, field_name: str) -> Optional[FieldMapping]:
        for mapping in self.field_mappings:
            if mapping.field_name == field_name:
                return mapping
        return None

    def get_association(self, field_name: str) -> Optional[AssociationMapping]:
        for mapping in self.association_mappings:
            if mapping.field_name == field_name:
                return mapping
        return None

    def has_field(self, field_name: str) -> bool:
        return (
            self.get_field(field_name) is not None
            or self.get_association(field_name) is not None
        )

    # -- Sink operations ----------------------------------------------------

    def set_primary_table(
        self,
        *,
        name: Optional[str] = None,
        schema_name: Optional[str] = None,
        indexes: Optional[Dict[str, IndexDefinition]] = None,
        unique_constraints: Optional[List[Any]] = None,
    ) -> None:
        """Update the given primary table attributes, leaving the rest alone."""
        if name is not None:
            self.table.name = name
        if schema_name is not None:
            self.table.schema_name = schema_name
        if indexes is not None:
            self.table.indexes = dict(indexes)
        if unique_constraints is not None:
            self.table.unique_constraints = list(unique_constraints)

    def map_field(self, mapping: FieldMapping) -> None:
        if self.has_field(mapping.field_name):
            raise DuplicateFieldError(self.name, mapping.field_name)
        self.field_mappings.append(mapping)
        logger.debug("%s: mapped field %r.", self.name, mapping)

    def set_id_generator_type(self, generator_type: IdGeneratorType) -> None:
        self.id_generator_type = generator_type

    def set_sequence_generator_definition(
        self, definition: SequenceGeneratorDefinition
    ) -> None:
        self.sequence_generator_definition = definition

    def map_association(
        self, cardinality: Cardinality, mapping: AssociationMapping
    ) -> None:
        """Register an association under an explicit cardinality tag."""
        try:
            cardinality = Cardinality(cardinality)
        except ValueError as exc:
            raise SchemaConversionError(
                f"Unknown cardinality: {cardinality!r}"
            ) from exc
        if self.has_field(mapping.field_name):
            raise DuplicateFieldError(self.name, mapping.field_name)
        if mapping.cardinality != cardinality:
            mapping = mapping.model_copy(update={"cardinality": cardinality})
        self.association_mappings.append(mapping)
        logger.debug("%s: mapped association %r.", self.name, mapping)

    def map_one_to_one(self, mapping: AssociationMapping) -> None:
        self.map_association(Cardinality.ONE_TO_ONE, mapping)

    def map_one_to_many(self, mapping: AssociationMapping) -> None:
        self.map_association(Cardinality.ONE_TO_MANY, mapping)

    def map_many_to_many(self, mapping: AssociationMapping) -> None:
        self.map_association(Cardinality.MANY_TO_MANY, mapping)

    # -- Serialisation ------------------------------------------------------

    def to_mapping(self) -> Dict[str, Any]:
        """Plain nested dict with camelCase keys and ``None`` values dropped."""
        data: Dict[str, Any] = self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={"name", "identifier", "resolved_table_name"},
        )
        data["table"]["name"] = self.resolved_table_name
        data["identifier"] = self.identifier
        return data

    def __repr__(self) -> str:
        return (
            f"<ClassMetadata {self.name} "
            f"({len(self.field_mappings)} fields, "
            f"{len(self.association_mappings)} associations)>"
        )


# ---------------------------------------------------------------------------
# Conversion configuration
# ---------------------------------------------------------------------------


class ConversionConfig(BaseModel):
    """Settings for a load → convert → export run."""

    model_config = _SHARED_CONFIG

    output_format: OutputFormat = Field(
        default=OutputFormat.YAML, description="Mapping file format."
    )
    file_patterns: List[str] = Field(
        default_factory=lambda: ["*.yml", "*.yaml"],
        min_length=1,
        description="Glob patterns used when a source is a directory.",
    )
    strict: bool = Field(
        default=True, description="Abort on the first model that fails."
    )
    clean_output: bool = Field(
        default=False, description="Empty the output directory before writing."
    )
    overwrite_existing: bool = Field(
        default=False, description="Replace mapping files that already exist."
    )
    write_manifest: bool = Field(
        default=True, description="Write manifest.json next to the mappings."
    )
    indent_size: int = Field(
        default=2, ge=1, le=8, description="Indentation of exported files."
    )

    @field_validator("file_patterns")
    @classmethod
    def _no_blank_patterns(cls, v: List[str]) -> List[str]:
        if any(not p.strip() for p in v):
            raise ValueError("File patterns must not be blank.")
        return v

    @computed_field  # type: ignore[misc]
    @property
    def file_extension(self) -> str:
        return ".dcm.json" if self.output_format == OutputFormat.JSON else ".dcm.yml"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SchemaConversionError",
    "SequenceDefinitionError",
    "DuplicateFieldError",
    "ModelConversionError",
    "SchemaSourceError",
    "IdGeneratorType",
    "Cardinality",
    "OutputFormat",
    "RawColumn",
    "RawIndex",
    "RawRelation",
    "RawModel",
    "NamedSequence",
    "DetailedSequence",
    "SequenceSpec",
    "parse_sequence",
    "ResolvedColumn",
    "ResolvedRelation",
    "IndexDefinition",
    "TableDescriptor",
    "FieldMapping",
    "SequenceGeneratorDefinition",
    "JoinColumn",
    "AssociationMapping",
    "ClassMetadata",
    "ConversionConfig",
]

logger.debug("schemashift.models loaded — %d public symbols.", len(__all__))

# File: schemashift/converter.py
"""
schemashift - Legacy Schema → Mapping Metadata Converter
==========================================================

Each model description goes through four stages, always in this order,
all writing into the same ``ClassMetadata`` record::

    1. Table name   ``tableName`` → primary table name / schema
    2. Columns      ``columns``   → field mappings + id generation strategy
    3. Indexes      ``indexes``   → named indexes + unique constraints
    4. Relations    ``relations`` → association mappings (cardinality inferred)

Raw declarations are first resolved into fully-defaulted values
(``resolve_column`` / ``resolve_relation``); the id-strategy and
cardinality rules only ever look at resolved values.

Models are independent of each other: ``convert_schema`` is a plain map
over the input mapping and keeps no state between models.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from schemashift.models import (
    AssociationMapping,
    Cardinality,
    ClassMetadata,
    FieldMapping,
    IdGeneratorType,
    IndexDefinition,
    JoinColumn,
    ModelConversionError,
    RawColumn,
    RawIndex,
    RawModel,
    RawRelation,
    ResolvedColumn,
    ResolvedRelation,
    SequenceGeneratorDefinition,
    parse_sequence,
)
from schemashift.utils import split_type_length, tableize

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemashift.converter")

# Column attributes copied verbatim onto the field mapping when declared.
_PASSTHROUGH_ATTRIBUTES: Tuple[str, ...] = (
    "precision",
    "scale",
    "unique",
    "options",
    "notnull",
    "version",
)

_DEFAULT_RELATION_TYPE: str = "one"
_DEFAULT_FOREIGN_TYPE: str = "many"
_DEFAULT_FOREIGN_COLUMN: str = "id"

_SURROGATE_ID_FIELD: str = "id"
_SURROGATE_ID_TYPE: str = "integer"


# ---------------------------------------------------------------------------
# Stage 1: table name
# ---------------------------------------------------------------------------


def split_table_name(table_name: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Split a possibly schema-qualified table name into ``(schema, name)``.

    >>> split_table_name("app.users")
    ('app', 'users')
    >>> split_table_name("users")
    (None, 'users')
    """
    if not table_name:
        return None, None
    schema, sep, name = table_name.partition(".")
    if not sep:
        return None, table_name
    return schema or None, name


def convert_table_name(
    model_name: str, model: RawModel, metadata: ClassMetadata
) -> None:
    schema, name = split_table_name(model.table_name)
    metadata.set_primary_table(name=name, schema_name=schema)


# ---------------------------------------------------------------------------
# Stage 2: columns
# ---------------------------------------------------------------------------


def resolve_column(key: str, declaration: Any) -> ResolvedColumn:
    """
    Apply the column defaults to one raw declaration.

    - a bare string is the column type
    - ``type(N)`` becomes type ``type`` with length ``"N"``, overriding any
      declared ``length``
    - column name defaults to the key, field name to the key

    Raises:
        SequenceDefinitionError: If ``sequence`` has an unsupported shape.
    """
    raw: RawColumn = RawColumn.from_declaration(declaration)

    type_name, embedded_length = split_type_length(raw.type)
    length: Any = embedded_length if embedded_length is not None else raw.length

    passthrough: Tuple[Tuple[str, Any], ...] = tuple(
        (attr, getattr(raw, attr))
        for attr in _PASSTHROUGH_ATTRIBUTES
        if getattr(raw, attr) is not None
    )

    return ResolvedColumn(
        key=key,
        field_name=raw.alias if raw.alias is not None else key,
        column_name=raw.name if raw.name is not None else key,
        type=type_name,
        length=length,
        passthrough=passthrough,
        is_id=raw.primary is not None,
        autoincrement=raw.autoincrement is not None,
        sequence=parse_sequence(key, raw.sequence) if raw.sequence is not None else None,
    )


def build_field_mapping(column: ResolvedColumn) -> FieldMapping:
    return FieldMapping(
        field_name=column.field_name,
        column_name=column.column_name,
        type=column.type,
        length=column.length,
        id=column.is_id,
        **dict(column.passthrough),
    )


def apply_id_generator(column: ResolvedColumn, metadata: ClassMetadata) -> None:
    """``autoincrement`` wins over ``sequence``; later columns override earlier ones."""
    if column.autoincrement:
        metadata.set_id_generator_type(IdGeneratorType.AUTO)
    elif column.sequence is not None:
        metadata.set_id_generator_type(IdGeneratorType.SEQUENCE)
        metadata.set_sequence_generator_definition(
            SequenceGeneratorDefinition.from_spec(column.sequence)
        )


def convert_columns(
    model_name: str, model: RawModel, metadata: ClassMetadata
) -> None:
    """
    Map every declared column, in declaration order.

    A model with no column marked ``primary`` gets a surrogate integer
    ``id`` field and the AUTO strategy, whatever the columns asked for.
    """
    has_id: bool = False

    for key, declaration in (model.columns or {}).items():
        column: ResolvedColumn = resolve_column(key, declaration)
        metadata.map_field(build_field_mapping(column))
        apply_id_generator(column, metadata)
        has_id = has_id or column.is_id

    if not has_id:
        # TODO: decide whether a sequence declared on a non-primary column
        # should survive here instead of being replaced by AUTO.
        logger.debug(
            "%s: no primary column declared; adding surrogate '%s'.",
            model_name,
            _SURROGATE_ID_FIELD,
        )
        metadata.map_field(FieldMapping(
            field_name=_SURROGATE_ID_FIELD,
            column_name=_SURROGATE_ID_FIELD,
            type=_SURROGATE_ID_TYPE,
            id=True,
        ))
        metadata.set_id_generator_type(IdGeneratorType.AUTO)


# ---------------------------------------------------------------------------
# Stage 3: indexes
# ---------------------------------------------------------------------------


def convert_indexes(
    model_name: str, model: RawModel, metadata: ClassMetadata
) -> None:
    if not model.indexes:
        return

    indexes: Dict[str, IndexDefinition] = {}
    unique_constraints: List[Any] = []

    for name, declaration in model.indexes.items():
        raw: RawIndex = RawIndex.model_validate(declaration or {})
        indexes[name] = IndexDefinition(columns=raw.field_list)
        if raw.type == "unique":
            unique_constraints.append(raw.field_list)

    metadata.set_primary_table(
        indexes=indexes, unique_constraints=unique_constraints
    )


# ---------------------------------------------------------------------------
# Stage 4: relations
# ---------------------------------------------------------------------------


def resolve_relation(key: str, declaration: Any, model_name: str) -> ResolvedRelation:
    """
    Apply the relation default chain, in order: alias, class, local,
    foreign, foreignAlias; then the ``one``/``many`` type defaults.
    """
    raw: RawRelation = RawRelation.model_validate(declaration or {})

    alias: str = raw.alias if raw.alias is not None else key
    class_name: str = raw.class_name if raw.class_name is not None else key
    local: str = raw.local if raw.local is not None else tableize(class_name)

    return ResolvedRelation(
        key=key,
        alias=alias,
        class_name=class_name,
        local=local,
        foreign=raw.foreign if raw.foreign is not None else _DEFAULT_FOREIGN_COLUMN,
        foreign_alias=raw.foreign_alias if raw.foreign_alias is not None else model_name,
        type=raw.type if raw.type is not None else _DEFAULT_RELATION_TYPE,
        foreign_type=(
            raw.foreign_type if raw.foreign_type is not None else _DEFAULT_FOREIGN_TYPE
        ),
        ref_class=raw.ref_class,
        on_delete=raw.on_delete,
        on_update=raw.on_update,
    )


def infer_cardinality(relation: ResolvedRelation) -> Cardinality:
    """
    ============  ===========  ============
    type          foreignType  cardinality
    ============  ===========  ============
    (refClass)    (any)        many-to-many
    one           one          one-to-one
    many          many         many-to-many
    anything else              one-to-many
    ============  ===========  ============
    """
    if relation.ref_class is not None:
        return Cardinality.MANY_TO_MANY
    if relation.type == "one" and relation.foreign_type == "one":
        return Cardinality.ONE_TO_ONE
    if relation.type == "many" and relation.foreign_type == "many":
        return Cardinality.MANY_TO_MANY
    return Cardinality.ONE_TO_MANY


def build_join_columns(relation: ResolvedRelation) -> List[JoinColumn]:
    # Relations through a refClass are joined by the pivot model.
    if relation.ref_class is not None:
        return []
    return [
        JoinColumn(
            name=relation.local,
            referenced_column_name=relation.foreign,
            on_delete=relation.on_delete,
            on_update=relation.on_update,
        )
    ]


def convert_relations(
    model_name: str, model: RawModel, metadata: ClassMetadata
) -> None:
    for key, declaration in (model.relations or {}).items():
        relation: ResolvedRelation = resolve_relation(key, declaration, model_name)
        cardinality: Cardinality = infer_cardinality(relation)

        mapping: AssociationMapping = AssociationMapping(
            field_name=relation.alias,
            target_entity=relation.class_name,
            mapped_by=relation.foreign_alias,
            cardinality=cardinality,
            join_columns=build_join_columns(relation),
        )
        metadata.map_association(cardinality, mapping)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

Stage = Callable[[str, RawModel, ClassMetadata], None]

_STAGES: Tuple[Stage, ...] = (
    convert_table_name,
    convert_columns,
    convert_indexes,
    convert_relations,
)


def convert_model(model_name: str, description: Any) -> ClassMetadata:
    """
    Convert one raw model description into its metadata record.

    Raises:
        ModelConversionError: For a non-mapping description or any failure
            inside a stage (the original error is chained).
    """
    model_name = str(model_name)

    if description is None:
        description = {}
    if not isinstance(description, Mapping):
        raise ModelConversionError(
            model_name,
            f"expected a mapping, got {type(description).__name__}",
        )

    try:
        model: RawModel = RawModel.model_validate(dict(description))
        metadata: ClassMetadata = ClassMetadata(name=model_name)
        for stage in _STAGES:
            stage(model_name, model, metadata)
    except (ValueError, TypeError) as exc:
        raise ModelConversionError(model_name, str(exc)) from exc

    logger.debug("Converted model %r.", metadata)
    return metadata


@dataclass(slots=True)
class ConversionResult:
    """Metadata records in input order, plus the models that failed."""

    metadatas: List[ClassMetadata] = field(default_factory=list)
    failures: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def model_names(self) -> List[str]:
        return [m.name for m in self.metadatas]

    def get(self, model_name: str) -> Optional[ClassMetadata]:
        for metadata in self.metadatas:
            if metadata.name == model_name:
                return metadata
        return None


def convert_schema(
    schema: Mapping[str, Any], *, strict: bool = True
) -> ConversionResult:
    """
    Convert every model of a merged schema mapping.

    In strict mode the first ``ModelConversionError`` propagates.  Otherwise
    each failure is logged and recorded in ``ConversionResult.failures``
    under the model's name.
    """
    result: ConversionResult = ConversionResult()

    for model_name, description in schema.items():
        try:
            result.metadatas.append(convert_model(model_name, description))
        except ModelConversionError as exc:
            if strict:
                raise
            logger.error("%s", exc)
            result.failures.append((exc.model_name, exc.reason))

    logger.info(
        "Converted %d model(s), %d failure(s).",
        len(result.metadatas),
        len(result.failures),
    )
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "split_table_name",
    "convert_table_name",
    "resolve_column",
    "build_field_mapping",
    "apply_id_generator",
    "convert_columns",
    "convert_indexes",
    "resolve_relation",
    "infer_cardinality",
    "build_join_columns",
    "convert_relations",
    "convert_model",
    "convert_schema",
    "ConversionResult",
]

logger.debug("schemashift.converter loaded.")

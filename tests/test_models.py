"""
tests/test_models.py
Unit tests for schemashift.models: the metadata sink, sequence parsing,
raw declaration parsing and configuration.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from schemashift.models import (
    AssociationMapping,
    Cardinality,
    ClassMetadata,
    ConversionConfig,
    DetailedSequence,
    DuplicateFieldError,
    FieldMapping,
    IdGeneratorType,
    JoinColumn,
    NamedSequence,
    OutputFormat,
    RawColumn,
    RawRelation,
    SchemaConversionError,
    SequenceDefinitionError,
    SequenceGeneratorDefinition,
    parse_sequence,
)
from schemashift.utils import is_safe_filename_stem, split_type_length, tableize


def _association(name: str = "author", cardinality: Cardinality = Cardinality.ONE_TO_MANY) -> AssociationMapping:
    return AssociationMapping(
        field_name=name,
        target_entity="User",
        mapped_by="posts",
        cardinality=cardinality,
        join_columns=[JoinColumn(name="author_id", referenced_column_name="id")],
    )


# ===========================================================================
# ClassMetadata sink
# ===========================================================================


class TestClassMetadata:
    def test_defaults(self) -> None:
        metadata = ClassMetadata(name="Post")
        assert metadata.field_mappings == []
        assert metadata.association_mappings == []
        assert metadata.id_generator_type == IdGeneratorType.NONE
        assert metadata.identifier == []
        assert metadata.resolved_table_name == "Post"

    def test_map_field_rejects_duplicates(self) -> None:
        metadata = ClassMetadata(name="Post")
        metadata.map_field(FieldMapping(field_name="title", column_name="title", type="string"))
        with pytest.raises(DuplicateFieldError) as exc_info:
            metadata.map_field(FieldMapping(field_name="title", column_name="heading", type="string"))
        assert exc_info.value.model_name == "Post"
        assert exc_info.value.field_name == "title"

    def test_association_and_field_share_names(self) -> None:
        metadata = ClassMetadata(name="Post")
        metadata.map_field(FieldMapping(field_name="author", column_name="author", type="string"))
        with pytest.raises(DuplicateFieldError):
            metadata.map_one_to_many(_association("author"))

    @pytest.mark.parametrize(
        "method, expected",
        [
            ("map_one_to_one", Cardinality.ONE_TO_ONE),
            ("map_one_to_many", Cardinality.ONE_TO_MANY),
            ("map_many_to_many", Cardinality.MANY_TO_MANY),
        ],
    )
    def test_per_cardinality_entry_points(self, method: str, expected: Cardinality) -> None:
        metadata = ClassMetadata(name="Post")
        getattr(metadata, method)(_association())
        assert metadata.association_mappings[0].cardinality == expected

    def test_map_association_rejects_unknown_tag(self) -> None:
        metadata = ClassMetadata(name="Post")
        with pytest.raises(SchemaConversionError, match="Unknown cardinality"):
            metadata.map_association("many_to_one", _association())

    def test_set_primary_table_is_partial(self) -> None:
        metadata = ClassMetadata(name="Post")
        metadata.set_primary_table(name="posts", schema_name="blog")
        metadata.set_primary_table(unique_constraints=[["slug"]])
        assert metadata.table.name == "posts"
        assert metadata.table.schema_name == "blog"
        assert metadata.table.unique_constraints == [["slug"]]
        assert metadata.resolved_table_name == "posts"

    def test_to_mapping(self) -> None:
        metadata = ClassMetadata(name="Post")
        metadata.set_primary_table(schema_name="blog")
        metadata.map_field(FieldMapping(field_name="id", column_name="id", type="integer", id=True))
        metadata.map_field(FieldMapping(field_name="title", column_name="title", type="string", length="200"))
        metadata.set_id_generator_type(IdGeneratorType.SEQUENCE)
        metadata.set_sequence_generator_definition(SequenceGeneratorDefinition(sequence_name="post_seq"))
        metadata.map_one_to_many(_association())

        data = metadata.to_mapping()

        assert data["table"] == {
            "name": "Post",
            "schema": "blog",
            "indexes": {},
            "uniqueConstraints": [],
        }
        assert data["fieldMappings"][1] == {
            "fieldName": "title",
            "columnName": "title",
            "type": "string",
            "length": "200",
            "id": False,
        }
        assert data["idGeneratorType"] == "sequence"
        assert data["sequenceGeneratorDefinition"] == {"sequenceName": "post_seq"}
        assert data["associationMappings"][0]["cardinality"] == "one_to_many"
        assert data["associationMappings"][0]["joinColumns"] == [
            {"name": "author_id", "referencedColumnName": "id"}
        ]
        assert data["identifier"] == ["id"]
        assert "name" not in data


# ===========================================================================
# Sequence definitions
# ===========================================================================


class TestParseSequence:
    def test_named(self) -> None:
        assert parse_sequence("id", "users_seq") == NamedSequence(name="users_seq")

    def test_detailed(self) -> None:
        spec = parse_sequence("id", {"name": "users_seq", "size": 5, "value": 100})
        assert spec == DetailedSequence(name="users_seq", size=5, value=100)

    def test_detailed_without_optional_parts(self) -> None:
        spec = parse_sequence("id", {"name": "users_seq"})
        definition = SequenceGeneratorDefinition.from_spec(spec)
        assert definition.sequence_name == "users_seq"
        assert definition.allocation_size is None
        assert definition.initial_value is None

    @pytest.mark.parametrize(
        "raw", [7, 1.5, True, ["users_seq"], {}, {"size": 5}, "", {"name": ""}]
    )
    def test_rejected_shapes(self, raw: object) -> None:
        with pytest.raises(SequenceDefinitionError) as exc_info:
            parse_sequence("id", raw)
        assert exc_info.value.column == "id"


# ===========================================================================
# Raw declarations
# ===========================================================================


class TestRawDeclarations:
    def test_unknown_column_keys_ignored(self) -> None:
        column = RawColumn.from_declaration({"type": "string", "fixed": True, "email": True})
        assert column.type == "string"

    def test_numeric_names_coerced(self) -> None:
        column = RawColumn.from_declaration({"type": "string", "name": 2024})
        assert column.name == "2024"

    def test_relation_aliases(self) -> None:
        relation = RawRelation.model_validate({
            "class": "User",
            "foreignAlias": "posts",
            "foreignType": "one",
            "refClass": "PostUser",
            "onDelete": "CASCADE",
            "onUpdate": "RESTRICT",
        })
        assert relation.class_name == "User"
        assert relation.foreign_alias == "posts"
        assert relation.foreign_type == "one"
        assert relation.ref_class == "PostUser"
        assert relation.on_delete == "CASCADE"
        assert relation.on_update == "RESTRICT"

    def test_malformed_column_declaration(self) -> None:
        with pytest.raises(ValidationError):
            RawColumn.from_declaration(12)


# ===========================================================================
# Configuration
# ===========================================================================


class TestConversionConfig:
    def test_defaults(self) -> None:
        config = ConversionConfig()
        assert config.output_format == OutputFormat.YAML
        assert config.file_patterns == ["*.yml", "*.yaml"]
        assert config.strict is True
        assert config.file_extension == ".dcm.yml"

    def test_json_extension(self) -> None:
        assert ConversionConfig(output_format="json").file_extension == ".dcm.json"

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ConversionConfig.model_validate({"output_fromat": "json"})

    def test_blank_pattern_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ConversionConfig(file_patterns=["*.yml", " "])


# ===========================================================================
# Helpers
# ===========================================================================


class TestHelpers:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Author", "author"),
            ("BlogPost", "blog_post"),
            ("already_snake", "already_snake"),
            ("HTTPCode", "h_t_t_p_code"),
        ],
    )
    def test_tableize(self, name: str, expected: str) -> None:
        assert tableize(name) == expected

    @pytest.mark.parametrize(
        "type_name, expected",
        [
            ("string(255)", ("string", "255")),
            ("text", ("text", None)),
            ("decimal(10,2)", ("decimal(10,2)", None)),
            ("string()", ("string()", None)),
            (None, (None, None)),
        ],
    )
    def test_split_type_length(self, type_name, expected) -> None:
        assert split_type_length(type_name) == expected

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("BlogPost", True),
            ("post.v2", True),
            ("", False),
            ("..", False),
            ("../BlogPost", False),
            ("app/BlogPost", False),
            ("app\\BlogPost", False),
        ],
    )
    def test_is_safe_filename_stem(self, name: str, expected: bool) -> None:
        assert is_safe_filename_stem(name) is expected

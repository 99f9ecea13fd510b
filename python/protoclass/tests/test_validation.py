"""Tests for property and class configuration validation."""

from __future__ import annotations

import json

import pytest

from protoclass.core.kinds import Kind
from protoclass.core.types import resolve
from protoclass.exceptions import ConfigError, UnknownType
from protoclass.models.config import ClassConfig, PropertyConfig, load_class_configs
from protoclass.models.registry import clear_registry
from protoclass.models.validation import validate_class_config, validate_property_config


@pytest.fixture(autouse=True)
def cleanup_registry():
    """Clean up registry before and after each test."""
    clear_registry()
    yield
    clear_registry()


def make_prop(**data):
    data.setdefault("name", "value")
    prop = PropertyConfig.from_mapping(data)
    prop.class_name = "Sample"
    return validate_property_config(prop)


class TestParsing:
    """Test pydantic parsing of raw configuration dicts."""

    def test_camel_case_and_snake_case(self):
        camel = PropertyConfig.from_mapping({"name": "a", "instanceOf": "Worker", "allowNull": False})
        snake = PropertyConfig.from_mapping({"name": "a", "instance_of": "Worker", "allow_null": False})
        assert camel.instance_of == snake.instance_of == "Worker"
        assert camel.allow_null is snake.allow_null is False

    def test_unknown_key(self):
        with pytest.raises(ConfigError):
            PropertyConfig.from_mapping({"name": "a", "type": "int", "bogus": 1})

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError):
            PropertyConfig.from_mapping(["name", "type"])

    def test_properties_must_be_a_list(self):
        with pytest.raises(ConfigError):
            ClassConfig.from_mapping({"className": "A", "properties": "name"})

    def test_property_entries_must_be_mappings(self):
        with pytest.raises(ConfigError):
            ClassConfig.from_mapping({"className": "A", "properties": ["name"]})


class TestPropertyRules:
    """Test validate_property_config() rules."""

    @pytest.mark.parametrize("name", [None, "", "1abc", "has space", "dash-name"])
    def test_invalid_names(self, name):
        with pytest.raises(ConfigError):
            make_prop(name=name, type="int")

    @pytest.mark.parametrize("name", ["init", "load", "insert", "to_dict"])
    def test_reserved_names(self, name):
        with pytest.raises(ConfigError):
            make_prop(name=name, type="int")

    def test_needs_exactly_one_kind(self):
        with pytest.raises(ConfigError):
            make_prop()
        with pytest.raises(ConfigError):
            make_prop(type="int", instanceOf="Worker")

    def test_type_casing_preserved(self):
        prop = make_prop(type="VarChar", length=5)
        assert prop.type == "VarChar"
        assert prop.descriptor.kind is Kind.VARCHAR

    def test_instance_constraint_resolves_to_object(self):
        prop = make_prop(instanceOf="Worker")
        assert prop.descriptor.kind is Kind.OBJECT

    def test_array_requires_element(self):
        with pytest.raises(ConfigError):
            make_prop(type="array")
        with pytest.raises(ConfigError):
            make_prop(type="array", arrayOf={"allowNull": True})

    def test_array_of_array_rejected(self):
        with pytest.raises((ConfigError, UnknownType)):
            make_prop(type="array", arrayOf={"type": "array", "arrayOf": {"type": "int"}})

    def test_element_is_tagged(self):
        prop = make_prop(name="tags", type="array", arrayOf={"type": "int"})
        element = prop.array_of
        assert element.is_element
        assert element.name == "tags"
        assert element.qualified_name == "Sample.tags[]"

    def test_array_of_outside_arrays(self):
        with pytest.raises(ConfigError):
            make_prop(type="int", arrayOf={"type": "int"})

    def test_length_normalized(self):
        assert make_prop(type="varchar", length="40").length == 40
        assert make_prop(type="char", length=12.0).length == 12
        assert make_prop(type="char", length="wide").length is None

    def test_varchar_requires_length(self):
        with pytest.raises(ConfigError):
            make_prop(type="varchar")

    @pytest.mark.parametrize(
        "kind,length",
        [("varchar", 0), ("varchar", 65536), ("tinyint", 5), ("bit", 65), ("bigint", 21)],
    )
    def test_length_bounds(self, kind, length):
        with pytest.raises(ConfigError, match="out of range"):
            make_prop(type=kind, length=length)

    def test_length_within_bounds(self):
        assert make_prop(type="tinyint", length=4).length == 4
        assert make_prop(type="varbinary", length=65535).length == 65535

    def test_decimals_without_length(self):
        with pytest.raises(ConfigError):
            make_prop(type="decimal", decimals=2)

    def test_float_length_requires_decimals(self):
        with pytest.raises(ConfigError):
            make_prop(type="double", length=10)
        assert make_prop(type="double", length=10, decimals=3).decimals == 3
        assert make_prop(type="decimal", length=10).decimals is None

    def test_decimals_bounded_by_length(self):
        with pytest.raises(ConfigError):
            make_prop(type="decimal", length=4, decimals=5)

    def test_enum_and_set_require_values(self):
        with pytest.raises(ConfigError):
            make_prop(type="enum")
        with pytest.raises(ConfigError):
            make_prop(type="set", values=[])

    @pytest.mark.parametrize(
        "data,expected",
        [
            ({"type": "int"}, False),
            ({"type": "varchar", "length": 5}, False),
            ({"type": "boolean"}, False),
            ({"type": "date"}, True),
            ({"type": "datetime"}, True),
            ({"type": "timestamp"}, True),
            ({"type": "Worker"}, True),
            ({"instanceOf": "Worker"}, True),
            ({"type": "array", "arrayOf": {"type": "int"}}, True),
        ],
    )
    def test_allow_null_defaults(self, data, expected):
        assert make_prop(**data).allow_null is expected

    def test_element_allow_null_defaults(self):
        assert make_prop(type="array", arrayOf={"type": "date"}).array_of.allow_null is False
        assert make_prop(type="array", arrayOf={"type": "Worker"}).array_of.allow_null is True

    def test_explicit_allow_null_kept(self):
        assert make_prop(type="date", allowNull=False).allow_null is False

    def test_transforms_filled_from_descriptor(self):
        prop = make_prop(type="int")
        descriptor = resolve("int")
        assert prop.set_transform is descriptor.coerce
        assert prop.save_transform is descriptor.serialize
        assert prop.load_transform is descriptor.deserialize
        assert prop.get_transform is None
        assert prop.store is True

    def test_user_transforms_kept(self):
        def upper(value, prop):
            return str(value).upper()

        prop = make_prop(type="text", setTransform=upper)
        assert prop.set_transform is upper
        assert prop.save_transform is resolve("text").serialize

    def test_idempotent(self):
        prop = make_prop(type="array", arrayOf={"type": "varchar", "length": "8"})
        snapshot = (
            prop.descriptor,
            prop.allow_null,
            prop.set_transform,
            prop.array_of.descriptor,
            prop.array_of.length,
        )
        validate_property_config(prop)
        assert snapshot == (
            prop.descriptor,
            prop.allow_null,
            prop.set_transform,
            prop.array_of.descriptor,
            prop.array_of.length,
        )

    def test_revalidation_follows_type_change(self):
        prop = make_prop(type="int")
        prop.type = "text"
        validate_property_config(prop)
        assert prop.set_transform is resolve("text").coerce

    def test_unvalidated_descriptor(self):
        prop = PropertyConfig.from_mapping({"name": "a", "type": "int"})
        assert not prop.is_validated
        with pytest.raises(ConfigError):
            prop.descriptor


class TestClassRules:
    """Test validate_class_config() rules."""

    def test_tags_properties_with_class_name(self):
        config = validate_class_config(
            {"className": "Person", "properties": [{"name": "name", "type": "text"}]}
        )
        assert isinstance(config, ClassConfig)
        assert config.properties[0].class_name == "Person"

    @pytest.mark.parametrize("name", [None, "", "bad name", "9lives"])
    def test_invalid_class_name(self, name):
        with pytest.raises(ConfigError):
            validate_class_config({"className": name, "properties": []})

    def test_property_error_propagates(self):
        with pytest.raises(ConfigError, match="Person.name"):
            validate_class_config(
                {"className": "Person", "properties": [{"name": "name", "type": "varchar"}]}
            )

    def test_all_properties_parent_first(self):
        parent = {"className": "Person", "properties": [{"name": "name", "type": "text"}]}
        child = validate_class_config(
            {
                "className": "Worker",
                "extends": parent,
                "properties": [{"name": "salary", "type": "float"}],
            }
        )
        assert [prop.name for prop in child.all_properties()] == ["name", "salary"]
        assert child.parent.properties[0].class_name == "Person"

    def test_cyclic_parent_chain(self):
        config = ClassConfig.from_mapping({"className": "Loop", "properties": []})
        config.parent = config
        with pytest.raises(ConfigError):
            validate_class_config(config)


class TestTableBinding:
    """Test the extra checks for table-bound classes."""

    def bound(self, properties, **extra):
        return {"className": "Worker", "tableName": "workers", "properties": properties, **extra}

    def test_requires_identity(self):
        with pytest.raises(ConfigError, match="'id'"):
            validate_class_config(self.bound([{"name": "name", "type": "text"}]))

    def test_identity_must_be_integer(self):
        with pytest.raises(ConfigError):
            validate_class_config(self.bound([{"name": "id", "type": "text"}]))

    def test_identity_may_be_inherited(self):
        parent = {"className": "Entity", "properties": [{"name": "id", "type": "bigint"}]}
        config = validate_class_config(
            self.bound([{"name": "name", "type": "text"}], extends=parent)
        )
        assert config.table_name == "workers"

    def test_invalid_table_name(self):
        with pytest.raises(ConfigError):
            validate_class_config(
                self.bound([{"name": "id", "type": "int"}], tableName="my table")
            )

    def test_duplicate_property(self):
        with pytest.raises(ConfigError, match="duplicate"):
            validate_class_config(
                self.bound([{"name": "id", "type": "int"}, {"name": "id", "type": "int"}])
            )

    def test_alternate_lookup_must_be_stored(self):
        properties = [
            {"name": "id", "type": "int"},
            {"name": "email", "type": "varchar", "length": 80, "store": False},
        ]
        with pytest.raises(ConfigError):
            validate_class_config(self.bound(properties, alternateLookup="email"))
        with pytest.raises(ConfigError):
            validate_class_config(self.bound(properties, alternateLookup="missing"))

    def test_unbound_class_skips_checks(self):
        config = validate_class_config(
            {"className": "Note", "properties": [{"name": "text", "type": "text"}]}
        )
        assert config.table_name is None


class TestLoadClassConfigs:
    """Test reading class configurations from a JSON file."""

    def test_extends_earlier_entry(self, tmp_path):
        path = tmp_path / "classes.json"
        path.write_text(
            json.dumps(
                [
                    {"className": "Person", "properties": [{"name": "name", "type": "text"}]},
                    {
                        "className": "Worker",
                        "extends": "Person",
                        "tableName": "workers",
                        "properties": [{"name": "id", "type": "int"}],
                    },
                ]
            )
        )
        configs = load_class_configs(path)
        assert list(configs) == ["Person", "Worker"]
        assert configs["Worker"].parent is configs["Person"]

    def test_unknown_parent(self, tmp_path):
        path = tmp_path / "classes.json"
        path.write_text(json.dumps([{"className": "Worker", "extends": "Person"}]))
        with pytest.raises(ConfigError, match="Person"):
            load_class_configs(path)

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "classes.json"
        path.write_text(json.dumps({"className": "Worker"}))
        with pytest.raises(ConfigError):
            load_class_configs(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "classes.json"
        path.write_text("[{")
        with pytest.raises(ConfigError):
            load_class_configs(path)

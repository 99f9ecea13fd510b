"""Property and class configuration validation.

validate_property_config() and validate_class_config() check a parsed
configuration, resolve every property's TypeDescriptor and fill defaults.
Both mutate the configuration in place and are idempotent: validating an
already-validated config converges to the same state.

Rules applied to each property, in order:
    1. name is an identifier and does not shadow a generated member
    2. exactly one of `type` / `instance_of`
    3. `type` is matched case-insensitively, the original casing is kept
    4. arrays need an element config, which is validated recursively
    5. the descriptor is resolved and attached
    6. length / decimals are normalized to ints
    7. per-kind length bounds
    8. decimals need a length; real/double/float need decimals with a length
    9. allow_null defaults per descriptor (objects, arrays and dates: True)
   10. set / save / load transforms default to the descriptor's
   11. store defaults to True (declared on the model)
"""

from __future__ import annotations

import re
from typing import Any

from protoclass.core.kinds import Kind
from protoclass.core.types import resolve
from protoclass.exceptions import ConfigError
from protoclass.models.config import ClassConfig, PropertyConfig

IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Names taken by generated members on every class.
RESERVED_NAMES = frozenset(
    {"init", "insert", "update", "load", "delete", "to_dict", "to_json", "to_wire"}
)

_TRANSFORMS = ("set_transform", "save_transform", "load_transform")


def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _fail(prop: PropertyConfig, message: str) -> ConfigError:
    return ConfigError(f"{prop.qualified_name}: {message}")


def _resolve_descriptor(prop: PropertyConfig) -> None:
    if prop.type is not None and Kind.parse(prop.type) is Kind.ARRAY:
        element = prop.array_of
        if element is None:
            raise _fail(prop, "array properties require an 'arrayOf' element config")
        element.name = prop.name
        element.class_name = prop.class_name
        element._is_element = True
        validate_property_config(element)
        if element.descriptor.kind is Kind.ARRAY:
            raise _fail(prop, "arrays of arrays are not supported")
        prop._descriptor = resolve(Kind.ARRAY, element.descriptor.kind)
        return
    if prop.array_of is not None:
        raise _fail(prop, "'arrayOf' is only valid on array properties")
    prop._descriptor = resolve(prop.type if prop.type is not None else Kind.OBJECT)


def _check_length(prop: PropertyConfig) -> None:
    descriptor = prop.descriptor
    prop.length = _as_int(prop.length)
    prop.decimals = _as_int(prop.decimals)

    if prop.length is None:
        if descriptor.length_required:
            raise _fail(prop, f"'{prop.type}' requires a length")
        if prop.decimals is not None and descriptor.decimals_applicable:
            raise _fail(prop, "decimals given without a length")
        return

    bounds = descriptor.length_bounds
    if bounds is not None and not bounds[0] <= prop.length <= bounds[1]:
        raise _fail(
            prop,
            f"length {prop.length} is out of range for '{prop.type}' "
            f"(allowed {bounds[0]}..{bounds[1]})",
        )
    if descriptor.decimals_applicable:
        if prop.decimals is None:
            if descriptor.length_requires_decimals:
                raise _fail(prop, f"'{prop.type}' with a length also requires decimals")
        elif not 0 <= prop.decimals <= prop.length:
            raise _fail(
                prop, f"decimals {prop.decimals} must be between 0 and length {prop.length}"
            )


def validate_property_config(prop: PropertyConfig) -> PropertyConfig:
    """Validate `prop`, attach its descriptor and fill defaults."""
    if not prop.is_element:
        if not isinstance(prop.name, str) or not IDENTIFIER.match(prop.name):
            raise _fail(prop, f"property name {prop.name!r} is not a valid identifier")
        if prop.name in RESERVED_NAMES:
            raise _fail(prop, f"property name '{prop.name}' is reserved")

    if (prop.type is None) == (prop.instance_of is None):
        raise _fail(prop, "exactly one of 'type' or 'instanceOf' is required")
    if prop.type is not None and not prop.type.strip():
        raise _fail(prop, "'type' must not be empty")

    _resolve_descriptor(prop)
    _check_length(prop)

    descriptor = prop.descriptor
    if descriptor.values_required and not prop.values:
        raise _fail(prop, f"'{prop.type}' requires a non-empty 'values' list")

    if prop.allow_null is None:
        if prop.is_element:
            prop.allow_null = descriptor.kind is Kind.OBJECT
        else:
            prop.allow_null = descriptor.nullable_default

    if prop._user_transforms is None:
        prop._user_transforms = frozenset(
            name for name in _TRANSFORMS if getattr(prop, name) is not None
        )
    prop.set_transform = (
        prop.set_transform if "set_transform" in prop._user_transforms else descriptor.coerce
    )
    prop.save_transform = (
        prop.save_transform
        if "save_transform" in prop._user_transforms
        else descriptor.serialize
    )
    prop.load_transform = (
        prop.load_transform
        if "load_transform" in prop._user_transforms
        else descriptor.deserialize
    )
    return prop


def validate_class_config(config: ClassConfig | Any) -> ClassConfig:
    """Validate a class config (and its parent chain). Returns the ClassConfig."""
    config = ClassConfig.from_mapping(config)
    if not isinstance(config.class_name, str) or not IDENTIFIER.match(config.class_name):
        raise ConfigError(f"Class name {config.class_name!r} is not a valid identifier")

    config.lineage()
    if config.parent is not None:
        validate_class_config(config.parent)

    for prop in config.properties:
        prop.class_name = config.class_name
        validate_property_config(prop)

    if config.table_name is not None:
        validate_table_binding(config)
    return config


def validate_table_binding(config: ClassConfig) -> None:
    """Checks that only apply to classes bound to a table."""
    if not IDENTIFIER.match(config.table_name or ""):
        raise ConfigError(
            f"{config.class_name}: table name {config.table_name!r} is not a valid identifier"
        )

    seen: set[str] = set()
    for prop in config.all_properties():
        if prop.name in seen:
            raise ConfigError(f"{config.class_name}: duplicate property '{prop.name}'")
        seen.add(prop.name)

    identity = [prop for prop in config.all_properties() if prop.name == "id"]
    if not identity:
        raise ConfigError(
            f"{config.class_name}: table-bound classes require an 'id' property"
        )
    if identity[0].descriptor.kind not in (
        Kind.TINYINT,
        Kind.SMALLINT,
        Kind.MEDIUMINT,
        Kind.INT,
        Kind.INTEGER,
        Kind.BIGINT,
    ):
        raise ConfigError(f"{config.class_name}: the 'id' property must be an integer kind")

    if config.alternate_lookup is not None:
        stored = {prop.name for prop in config.all_properties() if prop.store}
        if config.alternate_lookup not in stored:
            raise ConfigError(
                f"{config.class_name}: alternate lookup '{config.alternate_lookup}' "
                "is not a stored property"
            )


__all__ = [
    "IDENTIFIER",
    "RESERVED_NAMES",
    "validate_property_config",
    "validate_class_config",
    "validate_table_binding",
]

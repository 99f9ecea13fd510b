"""Configuration models and class synthesis.

Classes:
    PropertyConfig / ClassConfig / IndexConfig: pydantic configuration models
    GeneratedObject: base class of every generated class

Functions:
    create_class(config): validate a ClassConfig and synthesize its class
    validate_class_config(config) / validate_property_config(prop)
    load_class_configs(path): read class configs from a JSON file

Class Registry:
    register_class(): Register a generated class under its tag.
    unregister_class(): Remove a class from the registry.
    get_class(): Look a class up by tag.
    registered_classes(): Get dict of all registered classes.
    iter_classes(): Iterate over registered classes.
    clear_registry(): Remove all registered classes.

Example:
    from protoclass import create_class

    Person = create_class({
        "className": "Person",
        "properties": [
            {"name": "name", "type": "varchar", "length": 40},
            {"name": "born", "type": "date"},
        ],
    })
    alice = Person({"name": "Alice", "born": "1990-04-01"})
"""

from .base import GeneratedObject, instance_of, is_generated
from .config import ClassConfig, IndexConfig, PropertyConfig, load_class_configs
from .registry import (
    clear_registry,
    get_class,
    iter_classes,
    register_class,
    registered_classes,
    unregister_class,
)
from .synthesis import create_class
from .validation import validate_class_config, validate_property_config

__all__ = [
    "GeneratedObject",
    "is_generated",
    "instance_of",
    "PropertyConfig",
    "ClassConfig",
    "IndexConfig",
    "load_class_configs",
    "create_class",
    "validate_class_config",
    "validate_property_config",
    "register_class",
    "unregister_class",
    "get_class",
    "registered_classes",
    "iter_classes",
    "clear_registry",
]

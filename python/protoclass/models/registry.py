"""Global registry of generated classes.

This module maintains a global dict mapping class tags to generated classes.
Classes are registered by create_class() as soon as they are synthesized.

Class Tag Format:
    The configured className, e.g. "Worker". Tags are what nested-object
    references ("Worker:7") and wire payloads ({"__class__": "Worker"}) carry,
    so a tag must resolve to exactly one class at a time.

Functions:
    register_class(cls, overwrite=False):
        Add class to registry. Raises ValueError if another class is already
        registered under the same tag and overwrite=False.

    unregister_class(cls):
        Remove class from registry (no-op if not registered).

    get_class(tag) -> type[GeneratedObject] | None:
        Look a class up by tag.

    class_for_config(config) -> type[GeneratedObject] | None:
        Return the registered class synthesized from exactly this config.

    registered_classes() -> dict[str, type[GeneratedObject]]:
        Return copy of registry.

    iter_classes() -> tuple[type[GeneratedObject], ...]:
        Return tuple of registered classes.

    clear_registry():
        Remove all classes (used in tests for cleanup).

Re-synthesis:
    create_class() registers with overwrite=True: synthesizing a config whose
    tag is already taken replaces the earlier class, so the latest synthesis
    is what references resolve to.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from protoclass.models.base import GeneratedObject
    from protoclass.models.config import ClassConfig

logger = logging.getLogger(__name__)

_CLASSES: dict[str, type[GeneratedObject]] = {}


def register_class(cls: type[GeneratedObject], *, overwrite: bool = False) -> None:
    """Register a generated class under its class tag."""
    tag = cls.__class_tag__
    existing = _CLASSES.get(tag)
    if existing is cls:
        return
    if existing is not None:
        if not overwrite:
            raise ValueError(f"Class '{tag}' is already registered")
        logger.debug("Replacing generated class %s", tag)
    else:
        logger.debug("Registering generated class %s", tag)
    _CLASSES[tag] = cls


def unregister_class(cls: type[GeneratedObject]) -> None:
    """Remove a class from the registry if present."""
    if _CLASSES.get(cls.__class_tag__) is cls:
        del _CLASSES[cls.__class_tag__]


def get_class(tag: str) -> type[GeneratedObject] | None:
    return _CLASSES.get(tag)


def class_for_config(config: ClassConfig) -> type[GeneratedObject] | None:
    cls = _CLASSES.get(config.class_name) if config.class_name else None
    if cls is not None and cls.__config__ is config:
        return cls
    return None


def registered_classes() -> dict[str, type[GeneratedObject]]:
    """Return a copy of the registered class mapping."""
    return dict(_CLASSES)


def iter_classes() -> tuple[type[GeneratedObject], ...]:
    """Return tuple of registered classes."""
    return tuple(_CLASSES.values())


def clear_registry() -> None:
    """Reset the registry (intended for tests)."""
    _CLASSES.clear()


__all__ = [
    "register_class",
    "unregister_class",
    "get_class",
    "class_for_config",
    "registered_classes",
    "iter_classes",
    "clear_registry",
]

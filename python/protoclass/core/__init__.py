"""Type system: kinds, descriptors, transforms and the array adapter.

Modules:
    kinds:      Kind enumeration and the TypeDescriptor record
    transforms: per-kind validate / serialize / deserialize functions
    arrays:     TypedList and the array descriptor builder
    types:      TYPE_REGISTRY and resolve()
    callbacks:  named handler table behind the `function` kind
    wire:       plain-structure wire schema (JSON and MessagePack)
"""

from protoclass.core.arrays import TypedList, array_descriptor
from protoclass.core.callbacks import (
    clear_callbacks,
    get_callback,
    noop,
    register_callback,
    registered_callbacks,
    unregister_callback,
)
from protoclass.core.kinds import Kind, TypeDescriptor
from protoclass.core.types import LENGTH_BOUNDS, TYPE_REGISTRY, resolve

__all__ = [
    "Kind",
    "TypeDescriptor",
    "TYPE_REGISTRY",
    "LENGTH_BOUNDS",
    "resolve",
    "TypedList",
    "array_descriptor",
    "noop",
    "register_callback",
    "unregister_callback",
    "get_callback",
    "registered_callbacks",
    "clear_callbacks",
]

"""Protocols for key-value store interfaces.

This module defines the contract every store and sink in kvstack satisfies,
and the object store protocols used to seed stores.
"""

from kvstack.protocols._protocols import (
    ObjectSource,
    ObjectSourceAsync,
    Sink,
    Storage,
    check_storage,
    is_storage,
)

__all__ = [
    "Storage",
    "Sink",
    "ObjectSource",
    "ObjectSourceAsync",
    "is_storage",
    "check_storage",
]

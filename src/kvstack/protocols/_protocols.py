"""Core protocol definitions for key-value stores."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

from obspec import Get, GetAsync, List, ListAsync

if TYPE_CHECKING:
    from kvstack.typing import Absent, FetchResult, Reference, Value
    from kvstack.wrappers import StoreRecord

S = TypeVar("S", bound="Storage")

_STORAGE_METHODS = ("fetch", "get", "put", "delete")


@runtime_checkable
class Storage(Protocol):
    """
    The capability set every store implements.

    A store is an immutable value. Every operation returns a new store value
    reflecting any change of state, and the receiver remains a valid snapshot
    of the prior state. Callers must thread the returned store forward: even
    when the stored data did not change, decorators further down the chain
    may have produced new state.

    Absence is never an exception. ``get`` reports it with
    [ABSENT][kvstack.typing.ABSENT] and ``fetch`` with a ``"no_ref"``
    [Error][kvstack.typing.Error].

    Examples
    --------

    ```python
    from kvstack.stores import MapStore

    store = MapStore()
    store = store.put("item", 42)
    store, value = store.get("item")  # value == 42
    store, result = store.fetch("other")  # result == Error("no_ref", "other")
    store = store.delete("item")
    ```
    """

    def fetch(self: S, ref: Reference) -> tuple[S, FetchResult]:
        """
        Look up ``ref``.

        Returns
        -------
        tuple
            The new store and either ``Ok(value)`` or ``Error("no_ref", ref)``.
        """
        ...

    def get(self: S, ref: Reference) -> tuple[S, Value | Absent]:
        """
        Look up ``ref``.

        Returns
        -------
        tuple
            The new store and the stored value, or ``ABSENT``.
        """
        ...

    def put(self: S, ref: Reference, value: Value) -> S:
        """Associate ``ref`` with ``value``, replacing any previous value."""
        ...

    def delete(self: S, ref: Reference) -> S:
        """Remove any value stored under ``ref``. Deleting a missing ref is a no-op."""
        ...


@runtime_checkable
class Sink(Protocol):
    """Anything that accepts one record per store operation.

    Plain functions, bound methods and [RecordTrace][kvstack.wrappers.RecordTrace]
    all qualify.
    """

    def __call__(self, record: StoreRecord, /) -> Any: ...


@runtime_checkable
class ObjectSource(List, Get, Protocol):
    """
    An object store that can be listed and read.

    Used by [load][kvstack.obspec.load] to seed a store. obstore stores
    (``MemoryStore``, ``S3Store``, ...) implement this protocol.
    """

    pass


@runtime_checkable
class ObjectSourceAsync(ListAsync, GetAsync, Protocol):
    """Async counterpart of [ObjectSource][kvstack.protocols.ObjectSource]."""

    pass


def is_storage(obj: object) -> bool:
    """Return True if ``obj`` is a store instance providing every Storage operation."""
    return not isinstance(obj, type) and not _missing_methods(obj)


def check_storage(obj: S) -> S:
    """
    Return ``obj`` unchanged if it satisfies the Storage protocol.

    Raises
    ------
    TypeError
        If any of ``fetch``, ``get``, ``put`` or ``delete`` is missing or not
        callable, or if ``obj`` is a store class rather than an instance.
    """
    if isinstance(obj, type):
        raise TypeError(f"expected a store instance, got the class {obj.__name__!r}")
    missing = _missing_methods(obj)
    if missing:
        raise TypeError(
            f"{type(obj).__name__!r} object does not implement the Storage "
            f"protocol (missing: {', '.join(missing)})"
        )
    return obj


def _missing_methods(obj: object) -> list[str]:
    return [
        name
        for name in _STORAGE_METHODS
        if not callable(getattr(obj, name, None))
    ]


__all__ = [
    "Storage",
    "Sink",
    "ObjectSource",
    "ObjectSourceAsync",
    "is_storage",
    "check_storage",
]

"""In-memory store backed by a mapping."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from kvstack.protocols import Storage
from kvstack.typing import ABSENT, Ok, no_ref

if TYPE_CHECKING:
    from kvstack.typing import Absent, FetchResult, Reference, Value


class MapStore(Storage):
    """
    A store holding its entries in an immutable mapping snapshot.

    ``put`` and ``delete`` copy the mapping, so every store value keeps
    describing the state it was created with. This makes the store suitable
    as the innermost layer of any wrapper chain and as ground truth in tests.

    Examples
    --------
    ```python
    from kvstack.stores import MapStore

    empty = MapStore()
    full = empty.put("item", "value")

    full.get("item")   # (full, "value")
    empty.get("item")  # (empty, ABSENT)
    ```
    """

    _data: Mapping[Reference, Value]

    def __init__(self, data: Mapping[Reference, Value] | None = None) -> None:
        """
        Create a store.

        Parameters
        ----------
        data
            Optional initial entries. The mapping is copied.

        Raises
        ------
        ValueError
            If any initial value is ``ABSENT``.
        """
        entries = dict(data) if data is not None else {}
        for ref, value in entries.items():
            _check_value(ref, value)
        object.__setattr__(self, "_data", MappingProxyType(entries))

    @classmethod
    def _from_owned(cls, data: dict[Reference, Value]) -> MapStore:
        """Wrap a dict nobody else holds a reference to, skipping the copy."""
        store = cls.__new__(cls)
        object.__setattr__(store, "_data", MappingProxyType(data))
        return store

    def __reduce__(self):
        """Support pickling; the read-only mapping view itself is not picklable."""
        return (self.__class__, (dict(self._data),))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"'{type(self).__name__}' object is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"'{type(self).__name__}' object is immutable")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self._data)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MapStore):
            return NotImplemented
        return self._data == other._data

    __hash__ = None  # type: ignore[assignment]

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, ref: object) -> bool:
        return ref in self._data

    def __iter__(self) -> Iterator[Reference]:
        return iter(self._data)

    def to_dict(self) -> dict[Reference, Value]:
        """Return a fresh ``dict`` copy of the stored entries."""
        return dict(self._data)

    def fetch(self, ref: Reference) -> tuple[MapStore, FetchResult]:
        if ref in self._data:
            return self, Ok(self._data[ref])
        return self, no_ref(ref)

    def get(self, ref: Reference) -> tuple[MapStore, Value | Absent]:
        return self, self._data.get(ref, ABSENT)

    def put(self, ref: Reference, value: Value) -> MapStore:
        """Store ``value`` under ``ref``. ``ABSENT`` itself cannot be stored."""
        _check_value(ref, value)
        data = dict(self._data)
        data[ref] = value
        return self._from_owned(data)

    def delete(self, ref: Reference) -> MapStore:
        if ref not in self._data:
            return self
        data = dict(self._data)
        del data[ref]
        return self._from_owned(data)


def _check_value(ref: Reference, value: Value) -> None:
    if value is ABSENT:
        raise ValueError(f"cannot store ABSENT under {ref!r}; use delete() instead")


__all__ = ["MapStore"]

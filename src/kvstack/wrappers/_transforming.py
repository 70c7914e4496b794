"""Reference and value transformation for kvstack stores."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from kvstack.protocols import Storage, check_storage
from kvstack.typing import ABSENT, Ok, identity

if TYPE_CHECKING:
    from kvstack.typing import Absent, FetchResult, Reference, Value


class TransformingStore(Storage):
    """
    A wrapper that maps references and values on their way to and from a store.

    Three independent functions are applied:

    - ``map_ref`` to every reference before it reaches the underlying store,
    - ``map_to_store`` to every value before it is stored,
    - ``map_from_store`` to every value retrieved by ``get`` or ``fetch``.

    The functions are not required to be inverses of each other. Errors
    returned by ``fetch`` pass through untouched, so their ``ref`` is the
    mapped reference the underlying store saw.

    Exceptions raised by the functions are not caught.

    Examples
    --------
    Increment values on the way in:

    ```python
    from kvstack.stores import MapStore
    from kvstack.wrappers import TransformingStore

    store = TransformingStore(MapStore(), map_to_store=lambda x: x + 1)
    store = store.put("one", 1)
    store, value = store.get("one")  # value == 2
    ```

    Encode values as JSON in the underlying store:

    ```python
    import json

    store = TransformingStore(
        MapStore(), map_to_store=json.dumps, map_from_store=json.loads
    )
    ```
    """

    def __init__(
        self,
        store: Storage,
        *,
        map_ref: Callable[[Reference], Reference] = identity,
        map_to_store: Callable[[Value], Any] = identity,
        map_from_store: Callable[[Any], Value] = identity,
    ) -> None:
        """
        Create a transforming wrapper around a store.

        Parameters
        ----------
        store
            Any object implementing the [Storage][kvstack.protocols.Storage]
            protocol, including other wrappers.
        map_ref
            Applied to references before every operation. Default: identity.
        map_to_store
            Applied to values passed to ``put``. Default: identity.
        map_from_store
            Applied to values returned by ``get`` and ``fetch``. Default:
            identity.
        """
        for name, func in (
            ("map_ref", map_ref),
            ("map_to_store", map_to_store),
            ("map_from_store", map_from_store),
        ):
            if not callable(func):
                raise TypeError(f"{name} must be callable, got {type(func).__name__!r}")
        object.__setattr__(self, "_store", check_storage(store))
        object.__setattr__(self, "_map_ref", map_ref)
        object.__setattr__(self, "_map_to_store", map_to_store)
        object.__setattr__(self, "_map_from_store", map_from_store)

    def __getattr__(self, name: str) -> Any:
        """Forward unknown attributes to the underlying store.

        Note: Private attributes (starting with '_') are not forwarded.
        """
        if name.startswith("_"):
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}'"
            )
        if "_store" not in self.__dict__:
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}'"
            )
        return getattr(self._store, name)

    def __reduce__(self):
        """Support pickling; the mapping functions must be picklable too."""
        return (_restore, (self.__class__, self._store, self._config()))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"'{type(self).__name__}' object is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"'{type(self).__name__}' object is immutable")

    def __repr__(self) -> str:
        config = ", ".join(f"{k}={v!r}" for k, v in self._config().items())
        return f"{type(self).__name__}({self._store!r}, {config})"

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._store == other._store and self._config() == other._config()

    __hash__ = None  # type: ignore[assignment]

    def _config(self) -> dict[str, Callable[[Any], Any]]:
        return {
            "map_ref": self._map_ref,
            "map_to_store": self._map_to_store,
            "map_from_store": self._map_from_store,
        }

    def _wrap(self, inner: Storage) -> TransformingStore:
        return type(self)(inner, **self._config())

    @property
    def store(self) -> Storage:
        """The wrapped store."""
        return self._store

    def fetch(self, ref: Reference) -> tuple[TransformingStore, FetchResult]:
        inner, result = self._store.fetch(self._map_ref(ref))
        if isinstance(result, Ok):
            result = Ok(self._map_from_store(result.value))
        return self._wrap(inner), result

    def get(self, ref: Reference) -> tuple[TransformingStore, Value | Absent]:
        inner, value = self._store.get(self._map_ref(ref))
        if value is not ABSENT:
            value = self._map_from_store(value)
        return self._wrap(inner), value

    def put(self, ref: Reference, value: Value) -> TransformingStore:
        stored = self._map_to_store(value)
        if stored is ABSENT:
            raise ValueError(f"map_to_store returned ABSENT for {ref!r}")
        inner = self._store.put(self._map_ref(ref), stored)
        return self._wrap(inner)

    def delete(self, ref: Reference) -> TransformingStore:
        inner = self._store.delete(self._map_ref(ref))
        return self._wrap(inner)


def _restore(cls, store, config):
    return cls(store, **config)


__all__ = ["TransformingStore"]

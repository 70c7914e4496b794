"""Request tracing utilities for kvstack.

This module provides a wrapper that reports every request made to a store,
useful for debugging, testing, and inspecting access patterns.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from kvstack.protocols import Storage, check_storage
from kvstack.typing import ABSENT, Ok

if TYPE_CHECKING:
    from kvstack.protocols import Sink
    from kvstack.typing import Absent, FetchResult, Reference, Value

RequestKind = Literal["get", "fetch", "put", "delete"]

_REQUEST_KINDS: tuple[RequestKind, ...] = ("get", "fetch", "put", "delete")


@dataclass(frozen=True)
class StoreRecord:
    """Record of a single completed store request.

    ``value`` holds what the request saw at the traced layer: the value (or
    ``ABSENT``) returned by ``get``, the result returned by ``fetch``, and the
    value handed to ``put``. It is always ``ABSENT`` for ``delete``.

    Note
    ----
    ``timestamp`` is taken before the call and ``duration`` covers only the
    inner store call, not the time spent in the sink.
    """

    request: RequestKind
    ref: Reference
    value: Any = ABSENT
    timestamp: float | None = None
    duration: float | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return the record's request, ref and (except for delete) value."""
        if self.request == "delete":
            return {"request": self.request, "ref": self.ref}
        return {"request": self.request, "ref": self.ref, "value": self.value}

    def __str__(self) -> str:
        if self.request == "delete":
            return f"[request: {self.request}, ref: {self.ref!r}]"
        return f"[request: {self.request}, ref: {self.ref!r}, value: {self.value!r}]"


@dataclass
class RecordTrace:
    """Collection of store records with analysis methods.

    A ``RecordTrace`` is itself a sink: pass it directly to
    [TracingStore][kvstack.wrappers.TracingStore].
    """

    records: list[StoreRecord] = field(default_factory=list)

    def __call__(self, record: StoreRecord) -> None:
        self.add(record)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[StoreRecord]:
        return iter(self.records)

    def add(self, record: StoreRecord) -> None:
        """Add a record."""
        self.records.append(record)

    def clear(self) -> None:
        """Clear all recorded requests."""
        self.records.clear()

    def to_dataframe(self):
        """Convert to pandas DataFrame."""
        import pandas as pd

        columns = ["request", "ref", "value", "timestamp", "duration"]
        if not self.records:
            return pd.DataFrame(columns=columns)

        return pd.DataFrame(
            [
                {
                    "request": r.request,
                    "ref": r.ref,
                    "value": r.value,
                    "timestamp": r.timestamp,
                    "duration": r.duration,
                }
                for r in self.records
            ],
            columns=columns,
        )

    @property
    def total_requests(self) -> int:
        """Total number of requests."""
        return len(self.records)

    def summary(self) -> dict[str, Any]:
        """Get summary statistics.

        Hits and misses count ``get`` and ``fetch`` requests that found or did
        not find a value.
        """
        counts = {kind: 0 for kind in _REQUEST_KINDS}
        hits = misses = 0
        for r in self.records:
            counts[r.request] += 1
            if r.request == "get":
                if r.value is ABSENT:
                    misses += 1
                else:
                    hits += 1
            elif r.request == "fetch":
                if isinstance(r.value, Ok):
                    hits += 1
                else:
                    misses += 1

        return {
            "total_requests": len(self.records),
            "unique_refs": len({r.ref for r in self.records}),
            "requests": counts,
            "hits": hits,
            "misses": misses,
        }


def logging_sink(
    logger: logging.Logger | None = None, level: int = logging.INFO
) -> Sink:
    """
    Build a sink that writes each record to a logger.

    Parameters
    ----------
    logger
        Logger to write to. Defaults to the ``kvstack`` logger.
    level
        Level to log records at. Default: ``logging.INFO``.

    Examples
    --------
    ```python
    import logging
    from kvstack.stores import MapStore
    from kvstack.wrappers import TracingStore, logging_sink

    logging.basicConfig(level=logging.INFO)
    store = TracingStore(MapStore(), logging_sink())
    store = store.put("item", 1)  # logs "[request: put, ref: 'item', value: 1]"
    ```
    """
    if logger is None:
        logger = logging.getLogger("kvstack")

    def sink(record: StoreRecord) -> None:
        logger.log(level, "%s", record)

    return sink


class TracingStore(Storage):
    """
    A wrapper that reports every request made to an underlying store.

    Each operation is delegated unchanged. Once the inner store has answered,
    exactly one [StoreRecord][kvstack.wrappers.StoreRecord] is handed to the
    sink, and the inner store's new state is returned wrapped in a new
    ``TracingStore`` with the same sink.

    The sink is called synchronously and its exceptions are not caught. If
    the inner store raises, nothing is recorded.

    Examples
    --------
    ```python
    from kvstack.stores import MapStore
    from kvstack.wrappers import RecordTrace, TracingStore

    trace = RecordTrace()
    store = TracingStore(MapStore(), trace)

    store = store.put("item", 1)
    store, value = store.get("item")

    print([str(r) for r in trace])
    print(trace.summary())
    ```
    """

    def __init__(self, store: Storage, sink: Sink) -> None:
        """
        Create a tracing wrapper around a store.

        Parameters
        ----------
        store
            Any object implementing the [Storage][kvstack.protocols.Storage]
            protocol, including other wrappers.
        sink
            Callable receiving one [StoreRecord][kvstack.wrappers.StoreRecord]
            per completed request, e.g. a
            [RecordTrace][kvstack.wrappers.RecordTrace] or the result of
            [logging_sink][kvstack.wrappers.logging_sink].
        """
        if not callable(sink):
            raise TypeError(f"sink must be callable, got {type(sink).__name__!r}")
        object.__setattr__(self, "_store", check_storage(store))
        object.__setattr__(self, "_sink", sink)

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
        """Support pickling; the sink must be picklable too."""
        return (self.__class__, (self._store, self._sink))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"'{type(self).__name__}' object is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"'{type(self).__name__}' object is immutable")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._store!r}, sink={self._sink!r})"

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._store == other._store and self._sink == other._sink

    __hash__ = None  # type: ignore[assignment]

    @property
    def store(self) -> Storage:
        """The wrapped store."""
        return self._store

    @property
    def sink(self) -> Sink:
        """The sink records are sent to."""
        return self._sink

    def _wrap(self, inner: Storage) -> TracingStore:
        return type(self)(inner, self._sink)

    def _emit(
        self, request: RequestKind, ref: Reference, value: Any, start_time: float
    ) -> None:
        self._sink(
            StoreRecord(
                request=request,
                ref=ref,
                value=value,
                timestamp=start_time,
                duration=time.time() - start_time,
            )
        )

    def fetch(self, ref: Reference) -> tuple[TracingStore, FetchResult]:
        """Fetch a value (delegates to underlying store)."""
        start_time = time.time()
        inner, result = self._store.fetch(ref)
        self._emit("fetch", ref, result, start_time)
        return self._wrap(inner), result

    def get(self, ref: Reference) -> tuple[TracingStore, Value | Absent]:
        """Get a value (delegates to underlying store)."""
        start_time = time.time()
        inner, value = self._store.get(ref)
        self._emit("get", ref, value, start_time)
        return self._wrap(inner), value

    def put(self, ref: Reference, value: Value) -> TracingStore:
        """Put a value (delegates to underlying store)."""
        start_time = time.time()
        inner = self._store.put(ref, value)
        self._emit("put", ref, value, start_time)
        return self._wrap(inner)

    def delete(self, ref: Reference) -> TracingStore:
        """Delete a value (delegates to underlying store)."""
        start_time = time.time()
        inner = self._store.delete(ref)
        self._emit("delete", ref, ABSENT, start_time)
        return self._wrap(inner)


__all__ = [
    "RecordTrace",
    "StoreRecord",
    "TracingStore",
    "logging_sink",
]

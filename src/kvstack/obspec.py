"""Seed kvstack stores from object storage.

The functions here read every object under a prefix from any store
implementing the obspec ``List`` and ``Get`` protocols (for example obstore's
``MemoryStore`` or ``S3Store``) and return a [MapStore][kvstack.stores.MapStore]
snapshot keyed by object path. The resulting store is independent of the
object store: later writes to either side are not reflected in the other.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from kvstack.protocols import ObjectSource, ObjectSourceAsync
from kvstack.stores import MapStore

if TYPE_CHECKING:
    from kvstack.typing import Reference


def load(
    store: ObjectSource,
    prefix: str | None = None,
    *,
    map_path: Callable[[str], Reference] | None = None,
) -> MapStore:
    """
    Read objects from an object store into a new MapStore.

    Parameters
    ----------
    store
        Any store implementing the [List][obspec.List] and [Get][obspec.Get]
        protocols.
    prefix
        Only objects under this prefix are read. Prefix matching follows
        obspec's segment semantics: ``"data"`` matches ``"data/a.json"`` but
        not ``"database/a.json"``.
    map_path
        Optional function turning an object path into the reference it is
        stored under. Defaults to using the path unchanged.

    Returns
    -------
    MapStore
        A store mapping each reference to the object's contents as ``bytes``.

    Raises
    ------
    TypeError
        If ``store`` cannot be listed and read.
    ValueError
        If ``map_path`` maps two object paths to the same reference.

    Examples
    --------
    ```python
    from obstore.store import MemoryStore
    from kvstack.obspec import load

    objects = MemoryStore()
    objects.put("config/a.json", b'{"x": 1}')

    store = load(objects, "config", map_path=lambda p: p.removeprefix("config/"))
    store, raw = store.get("a.json")  # raw == b'{"x": 1}'
    ```
    """
    if not isinstance(store, ObjectSource):
        raise TypeError(
            f"{type(store).__name__!r} object does not implement obspec List and Get"
        )
    data = {}
    sources: dict[Reference, str] = {}
    for chunk in store.list(prefix=prefix):
        for obj in chunk:
            path = obj["path"]
            ref = _claim_ref(path, map_path, sources)
            data[ref] = bytes(store.get(path).buffer())
    return MapStore(data)


async def load_async(
    store: ObjectSourceAsync,
    prefix: str | None = None,
    *,
    map_path: Callable[[str], Reference] | None = None,
) -> MapStore:
    """
    Async version of [load][kvstack.obspec.load].

    ``store`` must implement [ListAsync][obspec.ListAsync] and
    [GetAsync][obspec.GetAsync]. Raises the same errors.
    """
    if not isinstance(store, ObjectSourceAsync):
        raise TypeError(
            f"{type(store).__name__!r} object does not implement obspec "
            "ListAsync and GetAsync"
        )
    data = {}
    sources: dict[Reference, str] = {}
    async for chunk in store.list_async(prefix=prefix):
        for obj in chunk:
            path = obj["path"]
            ref = _claim_ref(path, map_path, sources)
            result = await store.get_async(path)
            data[ref] = bytes(await result.buffer_async())
    return MapStore(data)


def _claim_ref(
    path: str,
    map_path: Callable[[str], Reference] | None,
    sources: dict[Reference, str],
) -> Reference:
    """Map ``path`` to its reference, refusing references already taken."""
    ref = map_path(path) if map_path is not None else path
    if ref in sources:
        raise ValueError(
            f"map_path maps both {sources[ref]!r} and {path!r} to {ref!r}"
        )
    sources[ref] = path
    return ref


__all__ = ["load", "load_async"]

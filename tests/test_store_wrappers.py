"""Shared tests for store wrapper classes.

These parameterized tests ensure consistent behavior across all store wrappers
(TracingStore, TransformingStore) and across stacks of them.
"""

import pickle

import pytest

from kvstack.stores import MapStore
from kvstack.typing import ABSENT, Error, Ok
from kvstack.wrappers import RecordTrace, TracingStore, TransformingStore

from .mocks import DictStore, add_one, sub_one


def make_tracing_wrapper(store):
    """Factory for TracingStore."""
    return TracingStore(store, RecordTrace())


def make_transforming_wrapper(store):
    """Factory for an identity TransformingStore."""
    return TransformingStore(store)


def make_stacked_wrapper(store):
    """Factory for a tracing store around a transforming store."""
    return TracingStore(TransformingStore(store), RecordTrace())


ALL_WRAPPER_FACTORIES = [
    pytest.param(make_tracing_wrapper, id="TracingStore"),
    pytest.param(make_transforming_wrapper, id="TransformingStore"),
    pytest.param(make_stacked_wrapper, id="Stacked"),
]


# =============================================================================
# Storage contract tests
# =============================================================================


class TestStoreWrapperContract:
    """Wrappers without transforms behave exactly like the store they wrap."""

    @pytest.mark.parametrize("make_wrapper", ALL_WRAPPER_FACTORIES)
    def test_missing_ref(self, make_wrapper):
        wrapper = make_wrapper(MapStore())

        assert wrapper.get("item")[1] is ABSENT
        assert wrapper.fetch("item")[1] == Error("no_ref", "item")

    @pytest.mark.parametrize("make_wrapper", ALL_WRAPPER_FACTORIES)
    def test_put_get_fetch(self, make_wrapper):
        wrapper = make_wrapper(MapStore()).put("item", "item-value")

        assert wrapper.get("item")[1] == "item-value"
        assert wrapper.fetch("item")[1] == Ok("item-value")

    @pytest.mark.parametrize("make_wrapper", ALL_WRAPPER_FACTORIES)
    def test_delete_is_idempotent(self, make_wrapper):
        wrapper = make_wrapper(MapStore()).put("item", 1).put("other", 2)

        once = wrapper.delete("item")
        twice = once.delete("item")

        assert once.get("item")[1] is ABSENT
        assert twice.get("item")[1] is ABSENT
        assert once.to_dict() == twice.to_dict() == {"other": 2}

    @pytest.mark.parametrize("make_wrapper", ALL_WRAPPER_FACTORIES)
    def test_previous_value_unchanged(self, make_wrapper):
        """Operations return new wrappers and leave the old ones valid."""
        before = make_wrapper(MapStore())
        after = before.put("item", 1)

        assert type(after) is type(before)
        assert before.get("item")[1] is ABSENT
        assert after.get("item")[1] == 1

    @pytest.mark.parametrize("make_wrapper", ALL_WRAPPER_FACTORIES)
    def test_state_threaded_to_base(self, make_wrapper):
        """Every request reaches the base store and its new state comes back."""
        wrapper = make_wrapper(DictStore())

        wrapper = wrapper.put("a", 1)
        wrapper, _ = wrapper.get("a")
        wrapper, _ = wrapper.fetch("a")
        wrapper = wrapper.delete("a")

        base = wrapper.store
        while not isinstance(base, DictStore):
            base = base.store
        assert [c[0] for c in base.calls] == ["put", "get", "fetch", "delete"]


# =============================================================================
# Immutability tests
# =============================================================================


class TestStoreWrapperFrozen:
    """Wrapper state cannot be rebound after construction."""

    @pytest.mark.parametrize("make_wrapper", ALL_WRAPPER_FACTORIES)
    def test_store_cannot_be_rebound(self, make_wrapper):
        wrapper = make_wrapper(MapStore())
        alias = wrapper

        with pytest.raises(AttributeError, match="object is immutable"):
            wrapper._store = MapStore({"x": 1})

        assert alias.get("x")[1] is ABSENT

    @pytest.mark.parametrize("make_wrapper", ALL_WRAPPER_FACTORIES)
    def test_attributes_cannot_be_added_or_deleted(self, make_wrapper):
        wrapper = make_wrapper(MapStore())

        with pytest.raises(AttributeError, match="object is immutable"):
            wrapper.extra = 1
        with pytest.raises(AttributeError, match="object is immutable"):
            del wrapper._store

    def test_transforms_cannot_be_rebound(self):
        wrapper = TransformingStore(MapStore(), map_to_store=add_one)

        with pytest.raises(
            AttributeError, match="'TransformingStore' object is immutable"
        ):
            wrapper._map_to_store = sub_one

    def test_sink_cannot_be_rebound(self):
        wrapper = TracingStore(MapStore(), RecordTrace())

        with pytest.raises(
            AttributeError, match="'TracingStore' object is immutable"
        ):
            wrapper._sink = print


# =============================================================================
# __getattr__ behavior tests
# =============================================================================


class TestStoreWrapperGetattr:
    """Tests for __getattr__ behavior on all store wrappers."""

    @pytest.mark.parametrize("make_wrapper", ALL_WRAPPER_FACTORIES)
    def test_getattr_forwards_public_attributes(self, make_wrapper):
        """Public attributes are forwarded to the underlying store."""
        wrapper = make_wrapper(DictStore({"a": 1}))

        assert wrapper.describe() == "DictStore with 1 entries"

    @pytest.mark.parametrize("make_wrapper", ALL_WRAPPER_FACTORIES)
    def test_getattr_raises_for_private_attributes(self, make_wrapper):
        """Private attributes (underscore-prefixed) raise AttributeError."""
        wrapper = make_wrapper(DictStore({"a": 1}))

        with pytest.raises(AttributeError, match="has no attribute '_data'"):
            _ = wrapper._data

    @pytest.mark.parametrize("make_wrapper", ALL_WRAPPER_FACTORIES)
    def test_getattr_raises_for_nonexistent_public_attributes(self, make_wrapper):
        """Non-existent public attributes raise AttributeError."""
        wrapper = make_wrapper(MapStore())

        with pytest.raises(AttributeError):
            _ = wrapper.nonexistent_method

    @pytest.mark.parametrize("WrapperClass", [TracingStore, TransformingStore])
    def test_getattr_raises_when_store_not_initialized(self, WrapperClass):
        """AttributeError raised when _store not yet in __dict__.

        This can happen during unpickling before __init__ runs.
        We simulate this by creating an object without calling __init__.
        """
        wrapper = object.__new__(WrapperClass)

        with pytest.raises(AttributeError):
            _ = wrapper.some_attribute

        with pytest.raises(AttributeError):
            _ = wrapper._private


# =============================================================================
# Pickling tests
# =============================================================================


class TestStoreWrapperPickling:
    """Pickle tests that apply to all store wrappers."""

    @pytest.mark.parametrize("make_wrapper", ALL_WRAPPER_FACTORIES)
    def test_pickle_roundtrip(self, make_wrapper):
        """Store wrapper can be pickled and unpickled."""
        wrapper = make_wrapper(MapStore()).put("item", 1)

        restored = pickle.loads(pickle.dumps(wrapper))

        assert type(restored) is type(wrapper)
        assert restored.get("item")[1] == 1

    @pytest.mark.parametrize("make_wrapper", ALL_WRAPPER_FACTORIES)
    def test_pickle_multiple_protocols(self, make_wrapper):
        """Pickling works with different pickle protocols."""
        wrapper = make_wrapper(MapStore({"a": 1}))

        for protocol in range(pickle.HIGHEST_PROTOCOL + 1):
            restored = pickle.loads(pickle.dumps(wrapper, protocol=protocol))
            assert type(restored) is type(wrapper)
            assert restored.to_dict() == {"a": 1}

    def test_pickle_preserves_transforms(self):
        wrapper = TransformingStore(
            MapStore(), map_ref=str, map_to_store=add_one, map_from_store=sub_one
        )

        restored = pickle.loads(pickle.dumps(wrapper))

        assert restored == wrapper
        assert restored.put(1, 1).store.to_dict() == {"1": 2}

    def test_pickle_preserves_trace_records(self):
        trace = RecordTrace()
        wrapper = TracingStore(MapStore(), trace).put("a", 1)

        restored = pickle.loads(pickle.dumps(wrapper))

        assert restored.sink == trace
        assert restored.sink is not trace
        restored.get("a")
        assert len(restored.sink) == 2
        assert len(trace) == 1


# =============================================================================
# Composition tests
# =============================================================================


class TestComposition:
    """Wrappers stack in any order; order changes what is observed."""

    def test_tracing_outside_transforming_records_caller_values(self):
        """A tracer records what crosses its own boundary.

        Outside a transformer, ``put(r, v)`` is recorded with the caller's
        ``v``, not ``map_to_store(v)``: ``put`` returns only the new store, so
        the stored value never reaches the outer layer.
        """
        trace = RecordTrace()
        store = TracingStore(
            TransformingStore(MapStore(), map_to_store=add_one), trace
        )

        store = store.put("r", 1)

        assert trace.records[0].as_dict() == {"request": "put", "ref": "r", "value": 1}
        assert store.to_dict() == {"r": 2}

    def test_tracing_inside_transforming_records_stored_values(self):
        """A tracer records what crosses its own boundary.

        Inside a transformer, ``put(r, v)`` is recorded with
        ``map_to_store(v)``, the value actually handed to the base store.
        """
        trace = RecordTrace()
        store = TransformingStore(
            TracingStore(MapStore(), trace), map_to_store=add_one
        )

        store = store.put("r", 1)

        assert trace.records[0].as_dict() == {"request": "put", "ref": "r", "value": 2}
        assert store.to_dict() == {"r": 2}

    def test_tracing_positions_see_retrieved_values(self):
        """Lookups: outer tracer sees mapped results, inner sees raw ones."""
        outer, inner = RecordTrace(), RecordTrace()
        store = TracingStore(
            TransformingStore(
                TracingStore(MapStore({"R": 1}), inner),
                map_ref=str.upper,
                map_from_store=sub_one,
            ),
            outer,
        )

        store, value = store.get("r")
        store, result = store.fetch("missing")

        assert value == 0
        assert result == Error("no_ref", "MISSING")
        assert [str(r) for r in outer] == [
            "[request: get, ref: 'r', value: 0]",
            "[request: fetch, ref: 'missing', value: Error(reason='no_ref', ref='MISSING')]",
        ]
        assert [str(r) for r in inner] == [
            "[request: get, ref: 'R', value: 1]",
            "[request: fetch, ref: 'MISSING', value: Error(reason='no_ref', ref='MISSING')]",
        ]

    def test_transforms_compose_outside_in(self):
        """Stacked transforms apply the outer map_to_store first."""
        store = TransformingStore(
            TransformingStore(MapStore(), map_to_store=lambda x: x * 10),
            map_to_store=add_one,
        )

        store = store.put("r", 1)

        assert store.to_dict() == {"r": 20}

    def test_deep_stack_preserves_structure(self):
        trace = RecordTrace()
        store = MapStore()
        for _ in range(5):
            store = TracingStore(TransformingStore(store), trace)

        store = store.put("a", 1)
        store, value = store.get("a")

        assert value == 1
        assert len(trace) == 10
        depth = 0
        layer = store
        while not isinstance(layer, MapStore):
            layer = layer.store
            depth += 1
        assert depth == 10

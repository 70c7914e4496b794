import pytest

from kvstack.stores import MapStore
from kvstack.wrappers import RecordTrace


@pytest.fixture
def store() -> MapStore:
    return MapStore()


@pytest.fixture
def trace() -> RecordTrace:
    return RecordTrace()

from ._version import __version__
from .protocols import Storage, check_storage, is_storage
from .stores import MapStore
from .typing import ABSENT, Error, Ok, identity, no_ref
from .wrappers import (
    RecordTrace,
    StoreRecord,
    TracingStore,
    TransformingStore,
    logging_sink,
)

__all__ = [
    "__version__",
    "ABSENT",
    "Error",
    "MapStore",
    "Ok",
    "RecordTrace",
    "Storage",
    "StoreRecord",
    "TracingStore",
    "TransformingStore",
    "check_storage",
    "identity",
    "is_storage",
    "logging_sink",
    "no_ref",
]

"""Store wrappers that add functionality to underlying stores.

This module provides transparent wrapper classes that add tracing and
reference/value transformation to any Storage implementation. Wrappers accept
any store, including other wrappers, so they can be stacked in any order.
"""

from kvstack.wrappers._tracing import (
    RecordTrace,
    StoreRecord,
    TracingStore,
    logging_sink,
)
from kvstack.wrappers._transforming import TransformingStore

__all__ = [
    "TracingStore",
    "TransformingStore",
    "RecordTrace",
    "StoreRecord",
    "logging_sink",
]

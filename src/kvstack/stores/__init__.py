"""Store implementations.

This module provides concrete stores that terminate a wrapper chain.
"""

from kvstack.stores._map import MapStore

__all__ = ["MapStore"]

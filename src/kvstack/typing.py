"""Value types shared by every store in kvstack."""

from __future__ import annotations

import enum
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeAlias, TypeVar, Union

Reference: TypeAlias = Hashable
"""An opaque identifier addressing a value in a store."""

Value: TypeAlias = Any
"""An opaque payload associated with a reference."""

T = TypeVar("T")


class _Absent(enum.Enum):
    ABSENT = "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"

    __str__ = __repr__


ABSENT: Literal[_Absent.ABSENT] = _Absent.ABSENT
"""Marker returned by ``get`` when no value is stored under a reference.

Distinct from ``None`` so that ``None`` can be stored as an ordinary value.
"""

Absent: TypeAlias = Literal[_Absent.ABSENT]

ErrorReason: TypeAlias = Literal["no_ref"]


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A successful lookup carrying the stored value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Error:
    """A failed lookup.

    Attributes
    ----------
    reason
        Why the lookup failed. Currently always ``"no_ref"``.
    ref
        The reference the reporting store looked up. Decorators that rewrite
        references pass the inner store's error through, so this may differ
        from the reference the caller passed in.
    """

    reason: ErrorReason
    ref: Reference

    @property
    def ok(self) -> bool:
        return False


FetchResult: TypeAlias = Union[Ok[Any], Error]


def no_ref(ref: Reference) -> Error:
    """Build the not-found error for ``ref``."""
    return Error("no_ref", ref)


def identity(x: T) -> T:
    """Return ``x`` unchanged. Default for every optional transform."""
    return x


__all__ = [
    "ABSENT",
    "Absent",
    "Error",
    "ErrorReason",
    "FetchResult",
    "Ok",
    "Reference",
    "Value",
    "identity",
    "no_ref",
]

"""Scalar comparator: totally ordered primitives merge by maximum."""

from __future__ import annotations

from typing import Any


def merge_scalar(current: Any, other: Any) -> tuple[Any, bool]:
    """Return ``max(current, other)`` and whether it differs from *current*.

    *current* only moves when *other* is strictly greater, so equal values
    never report a change.  ``False < True``, numbers compare numerically,
    ``str`` by code point and ``bytes`` by byte.

    Examples
    --------
    >>> merge_scalar(3, 5)
    (5, True)
    >>> merge_scalar("foo", "bar")
    ('foo', False)
    """
    if other > current:
        return other, True
    return current, False


def zero_scalar(value: Any) -> Any:
    return type(value)()

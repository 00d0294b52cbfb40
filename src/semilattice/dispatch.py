"""Capability dispatch: which merge strategy applies to a type.

Strategies are tried in priority order:

1. ``custom`` -- the type implements ``__merge__`` (the ``Mergeable`` protocol)
2. ``record`` -- dataclasses and ``NamedTuple`` classes, merged fieldwise
3. ``mapping`` -- mutable mappings, merged keywise
4. ``scalar`` -- totally ordered primitives, merged by maximum

Anything else is unsupported.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import MutableMapping
from enum import Enum, auto
from typing import Any, Protocol, Self, runtime_checkable

from semilattice.errors import UnsupportedTypeError

logger = logging.getLogger("semilattice.dispatch")

ORDERED_TYPES: tuple[type, ...] = (bool, int, float, str, bytes)


@runtime_checkable
class Mergeable(Protocol):
    """Protocol for values that merge themselves.

    ``__merge__`` sets ``self`` to the least upper bound of ``self`` and
    *other*, in place, and returns whether ``self`` changed.  *other* is
    always the same type as ``self``.  Implementations must be commutative,
    associative and idempotent, and ``type(self)()`` must be the bottom.

    Examples
    --------
    >>> class MinInt:
    ...     def __init__(self, value: int = 0) -> None:
    ...         self.value = value
    ...     def __merge__(self, other: MinInt) -> bool:
    ...         if other.value < self.value:
    ...             self.value = other.value
    ...             return True
    ...         return False
    >>> isinstance(MinInt(), Mergeable)
    True
    """

    def __merge__(self, other: Self) -> bool: ...


class Strategy(Enum):
    """How two values of one type are merged."""

    custom = auto()
    record = auto()
    mapping = auto()
    scalar = auto()


def is_named_tuple(tp: type) -> bool:
    return issubclass(tp, tuple) and hasattr(tp, "_fields")


def is_record_type(tp: type) -> bool:
    return dataclasses.is_dataclass(tp) or is_named_tuple(tp)


def resolve_strategy(
    tp: type, *, ordered_types: tuple[type, ...] = ()
) -> Strategy:
    """Return the merge strategy for *tp*.

    Parameters
    ----------
    tp : type
        The type to dispatch on.
    ordered_types : tuple[type, ...]
        Extra totally ordered types merged by maximum, on top of
        ``ORDERED_TYPES``.

    Returns
    -------
    Strategy

    Raises
    ------
    UnsupportedTypeError
        If no strategy applies.

    Examples
    --------
    >>> resolve_strategy(int)
    <Strategy.scalar: 4>
    >>> resolve_strategy(dict)
    <Strategy.mapping: 3>
    """
    strategy = _match_strategy(tp, ordered_types)
    if strategy is None:
        logger.warning("No merge strategy for %s", tp.__qualname__)
        raise UnsupportedTypeError(tp)
    return strategy


def is_mergeable(value: Any, *, ordered_types: tuple[type, ...] = ()) -> bool:
    """Check whether a value (or a type) resolves to a merge strategy.

    Examples
    --------
    >>> is_mergeable({"a": 1})
    True
    >>> is_mergeable([1, 2])
    False
    """
    tp = value if isinstance(value, type) else type(value)
    return _match_strategy(tp, ordered_types) is not None


def _match_strategy(tp: type, ordered_types: tuple[type, ...]) -> Strategy | None:
    if callable(getattr(tp, "__merge__", None)):
        return Strategy.custom
    if is_record_type(tp):
        return Strategy.record
    if issubclass(tp, MutableMapping):
        return Strategy.mapping
    if issubclass(tp, ORDERED_TYPES + ordered_types):
        return Strategy.scalar
    return None

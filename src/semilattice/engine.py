"""Top-level merge and join operations.

``merge(target, source)`` updates *target* in place to the least upper bound
of itself and *source* and reports whether it changed.  ``join(a, b)`` returns
that least upper bound as a new value, leaving both inputs alone.

Both dispatch on the runtime type of the values (see ``semilattice.dispatch``)
and recurse structurally through records and mappings until they reach a
custom ``__merge__`` or an ordered scalar.

Examples
--------
>>> join(3, 5)
5
>>> counts = {"a": 1}
>>> merge(counts, {"a": 2, "b": 1})
True
>>> counts
{'a': 2, 'b': 1}
>>> cell = Cell(3)
>>> merge(cell, 1)
False
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from functools import reduce
from typing import Any

from semilattice.config import MergeConfig
from semilattice.dispatch import Strategy, resolve_strategy
from semilattice.errors import (
    MergeError,
    NonAddressableTargetError,
    TypeMismatchError,
    UnsupportedTypeError,
)
from semilattice.mappings import empty_like, key_path, merge_mapping
from semilattice.records import (
    field_path,
    is_immutable_record,
    merge_record,
    rebuild_record,
    record_fields,
)
from semilattice.scalars import merge_scalar, zero_scalar


__all__ = [
    "Cell",
    "Engine",
    "check",
    "configure",
    "default_engine",
    "join",
    "join_all",
    "merge",
    "zero_value",
]

logger = logging.getLogger("semilattice.engine")


@dataclass
class Cell[T]:
    """A mutable box that makes any mergeable value addressable.

    Scalars and immutable records cannot be merged in place; wrap them in a
    ``Cell`` and pass the cell as the merge target.

    Examples
    --------
    >>> cell = Cell("bar")
    >>> merge(cell, "foo")
    True
    >>> cell.value
    'foo'
    """

    value: T


class Engine:
    """Merge engine bound to one ``MergeConfig``.

    Strategy resolution is memoised per engine, so a type always resolves to
    the same strategy.  Engines hold no other state and can be shared.

    Parameters
    ----------
    config : MergeConfig | None
        Engine settings; defaults to ``MergeConfig()``.
    """

    def __init__(self, config: MergeConfig | None = None) -> None:
        self._config = config or MergeConfig()
        self._strategies: dict[type, Strategy] = {}

    @property
    def config(self) -> MergeConfig:
        return self._config

    def resolve_strategy(self, tp: type) -> Strategy:
        strategy = self._strategies.get(tp)
        if strategy is None:
            strategy = resolve_strategy(tp, ordered_types=self._config.ordered_types)
            logger.debug("Resolved %s -> %s", tp.__qualname__, strategy.name)
            self._strategies[tp] = strategy
        return strategy

    # -- public operations ----------------------------------------------

    def merge(self, target: Any, source: Any) -> bool:
        """Set *target* to the least upper bound of itself and *source*.

        Parameters
        ----------
        target : Any
            A ``Cell``, a mutable dataclass, a mutable mapping, or a value
            implementing ``__merge__``.
        source : Any
            A value of exactly the target's type, read only.

        Returns
        -------
        bool
            Whether *target* changed.

        Raises
        ------
        NonAddressableTargetError
            If *target* cannot be updated in place.
        TypeMismatchError
            If *source*'s type differs from the target's at any level.
        UnreachableFieldError
            If a record field is private.
        UnsupportedTypeError
            If a value has no merge strategy.
        """
        if isinstance(target, Cell) and not isinstance(source, Cell):
            if self._config.precheck:
                self._check(target.value, source, "")
            target.value, changed = self._merge_value(target.value, source, "")
            logger.debug("Merged %s into Cell (changed=%s)", type(source).__qualname__, changed)
            return changed

        self._require_addressable(target)
        if self._config.precheck:
            self._check(target, source, "")
        _, changed = self._merge_value(target, source, "")
        logger.debug("Merged %s (changed=%s)", type(target).__qualname__, changed)
        return changed

    def join(self, a: Any, b: Any) -> Any:
        """Return the least upper bound of *a* and *b* without mutating either.

        The result starts as a fresh copy of *a* (built through the lattice:
        zero value of every custom-merge part, merged with *a*) and then
        absorbs *b*.

        Raises
        ------
        TypeMismatchError
            If ``type(a) is not type(b)``, or the types diverge deeper down.
        """
        if type(a) is not type(b):
            self._mismatch(type(a), type(b), "")
        result = self.copy_value(a)
        result, _ = self._merge_value(result, b, "")
        logger.debug("Joined %s", type(a).__qualname__)
        return result

    def join_all(self, values: Iterable[Any]) -> Any:
        """Fold ``join`` over *values*; the order does not matter.

        Raises
        ------
        ValueError
            If *values* is empty.
        """
        items = list(values)
        if not items:
            msg = "join_all() requires at least one value"
            raise ValueError(msg)
        return reduce(self.join, items[1:], self.copy_value(items[0]))

    def zero_value(self, value: Any) -> Any:
        """Return the bottom element of *value*'s lattice.

        Scalars and mappings use their type's empty constructor, records are
        built from the zero value of every field, and custom-merge types call
        ``type(value)()``.  ``None`` (an absent mapping) is its own zero.

        Raises
        ------
        UnsupportedTypeError
            If *value*'s type has no strategy or cannot be constructed empty.
        """
        if value is None:
            return None
        tp = type(value)
        try:
            match self.resolve_strategy(tp):
                case Strategy.record:
                    return rebuild_record(value, self.zero_value)
                case Strategy.mapping:
                    return empty_like(value)
                case Strategy.scalar:
                    return zero_scalar(value)
                case Strategy.custom:
                    return tp()
        except MergeError:
            raise
        except (TypeError, ValueError) as exc:
            logger.warning("No zero value for %s: %s", tp.__qualname__, exc)
            raise UnsupportedTypeError(tp, "cannot build its zero value") from exc

    def copy_value(self, value: Any) -> Any:
        """Return a fresh value equal to *value* that shares no mutable state.

        Scalars are immutable and returned as is; records and mappings are
        rebuilt from copies of their parts; custom-merge values are merged
        into their zero value.
        """
        if value is None:
            return None
        match self.resolve_strategy(type(value)):
            case Strategy.scalar:
                return value
            case Strategy.record:
                return rebuild_record(value, self.copy_value)
            case Strategy.mapping:
                result = empty_like(value)
                for key, item in value.items():
                    result[key] = self.copy_value(item)
                return result
            case Strategy.custom:
                fresh = self.zero_value(value)
                fresh.__merge__(value)
                return fresh

    def check(self, target: Any, source: Any) -> None:
        """Validate that *source* can be merged into *target*.

        Walks both values the way ``merge`` would, without mutating anything,
        and raises the error ``merge`` would raise.  A ``Cell`` target is
        checked against its content.  Targets ``merge`` cannot update in
        place raise ``NonAddressableTargetError``.
        """
        if isinstance(target, Cell) and not isinstance(source, Cell):
            target = target.value
        else:
            self._require_addressable(target)
        self._check(target, source, "")

    # -- recursion ------------------------------------------------------

    def _check(self, target: Any, source: Any, path: str) -> None:
        if target is None or source is None:
            if target is None and source is None:
                return
            self._require_mapping(target, source, path)
            if target is None:
                self._check_copy(source, path)
            return

        if type(target) is not type(source):
            self._mismatch(type(target), type(source), path)

        match self.resolve_strategy(type(target)):
            case Strategy.record:
                for name in record_fields(type(target)):
                    self._check(
                        getattr(target, name), getattr(source, name), field_path(path, name)
                    )
            case Strategy.mapping:
                for key, source_value in source.items():
                    entry_path = key_path(path, key)
                    if key in target:
                        self._check_copy(target[key], entry_path)
                        self._check(target[key], source_value, entry_path)
                    else:
                        self._check_copy(source_value, entry_path)
            case Strategy.custom | Strategy.scalar:
                pass

    def _merge_value(self, current: Any, other: Any, path: str) -> tuple[Any, bool]:
        if current is None or other is None:
            if current is None and other is None:
                return None, False
            self._require_mapping(current, other, path)
            return merge_mapping(
                current, other, self._merge_value, self.copy_value, path=path
            )

        tp = type(current)
        if tp is not type(other):
            self._mismatch(tp, type(other), path)

        match self.resolve_strategy(tp):
            case Strategy.custom:
                return current, bool(current.__merge__(other))
            case Strategy.record:
                return merge_record(current, other, self._merge_value, path=path)
            case Strategy.mapping:
                return merge_mapping(
                    current, other, self._merge_value, self.copy_value, path=path
                )
            case Strategy.scalar:
                return merge_scalar(current, other)

    def _check_copy(self, value: Any, path: str) -> None:
        """Validate that ``copy_value(value)`` will succeed."""
        if value is None:
            return
        match self.resolve_strategy(type(value)):
            case Strategy.custom:
                self.zero_value(value)
            case Strategy.record:
                for name in record_fields(type(value)):
                    self._check_copy(getattr(value, name), field_path(path, name))
            case Strategy.mapping:
                for key, item in value.items():
                    self._check_copy(item, key_path(path, key))
            case Strategy.scalar:
                pass

    def _require_mapping(self, current: Any, other: Any, path: str) -> None:
        present = other if current is None else current
        if self.resolve_strategy(type(present)) is not Strategy.mapping:
            self._mismatch(type(current), type(other), path)

    def _require_addressable(self, target: Any) -> None:
        tp = type(target)
        if target is None:
            logger.warning("Merge target is None")
            raise NonAddressableTargetError(tp)
        strategy = self.resolve_strategy(tp)
        if strategy is Strategy.scalar or (
            strategy is Strategy.record and is_immutable_record(tp)
        ):
            logger.warning("Merge target %s is not addressable", tp.__qualname__)
            raise NonAddressableTargetError(tp)

    def _mismatch(self, expected: type, actual: type, path: str) -> None:
        logger.warning(
            "Type mismatch at %s: %s vs %s",
            path or "<root>",
            expected.__qualname__,
            actual.__qualname__,
        )
        raise TypeMismatchError(expected, actual, path=path)


_default_engine: Engine | None = None


def default_engine() -> Engine:
    """Return the engine behind the module-level functions.

    Created on first use with the default ``MergeConfig()``; it never reads
    configuration files.  Use ``configure(load_config())`` to apply one.
    """
    global _default_engine
    if _default_engine is None:
        _default_engine = Engine()
    return _default_engine


def configure(config: MergeConfig) -> Engine:
    """Replace the default engine with one built from *config*."""
    global _default_engine
    _default_engine = Engine(config)
    return _default_engine


def merge(target: Any, source: Any) -> bool:
    """Merge *source* into *target* in place; return whether it changed."""
    return default_engine().merge(target, source)


def join(a: Any, b: Any) -> Any:
    """Return the least upper bound of *a* and *b*."""
    return default_engine().join(a, b)


def join_all(values: Iterable[Any]) -> Any:
    return default_engine().join_all(values)


def zero_value(value: Any) -> Any:
    return default_engine().zero_value(value)


def check(target: Any, source: Any) -> None:
    default_engine().check(target, source)

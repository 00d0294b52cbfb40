"""Structural recursion over records (dataclasses and ``NamedTuple``).

Mutable dataclasses are merged in place.  Frozen dataclasses and named tuples
are rebuilt with the merged field values, and the caller stores the new
instance wherever the old one lived.
"""

from __future__ import annotations

import dataclasses
import functools
import logging
from collections.abc import Callable
from typing import Any

from semilattice.dispatch import is_named_tuple
from semilattice.errors import UnreachableFieldError

logger = logging.getLogger("semilattice.records")

type MergeFn = Callable[[Any, Any, str], tuple[Any, bool]]


def is_immutable_record(tp: type) -> bool:
    if is_named_tuple(tp):
        return True
    return dataclasses.is_dataclass(tp) and tp.__dataclass_params__.frozen  # type: ignore[attr-defined]


@functools.cache
def record_fields(tp: type) -> tuple[str, ...]:
    """Return the names of *tp*'s fields, all of which the engine may merge.

    Raises
    ------
    UnreachableFieldError
        If a field is private (leading underscore) or, for an immutable
        record, cannot be passed to the constructor.
    """
    if is_named_tuple(tp):
        return tuple(tp._fields)  # type: ignore[attr-defined]

    immutable = is_immutable_record(tp)
    names: list[str] = []
    for f in dataclasses.fields(tp):
        if f.name.startswith("_") or (immutable and not f.init):
            logger.warning("Unreachable field %s.%s", tp.__qualname__, f.name)
            raise UnreachableFieldError(tp, f.name)
        names.append(f.name)
    return tuple(names)


def field_path(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def merge_record(
    current: Any, other: Any, merge_value: MergeFn, *, path: str = ""
) -> tuple[Any, bool]:
    """Merge *other* into *current* field by field.

    Every field is visited, even after one reports a change.  The record
    changed iff any field changed.

    Parameters
    ----------
    current : Any
        Target record.  Updated in place unless its type is immutable.
    other : Any
        Source record of the same type, read only.
    merge_value : MergeFn
        Recursive merge applied to each ``(current_field, other_field, path)``.
    path : str
        Dotted location of *current*, for error messages.

    Returns
    -------
    tuple[Any, bool]
        The merged record (``current`` itself when mutable) and the changed
        flag.
    """
    tp = type(current)
    immutable = is_immutable_record(tp)
    merged: dict[str, Any] = {}
    for name in record_fields(tp):
        value, field_changed = merge_value(
            getattr(current, name), getattr(other, name), field_path(path, name)
        )
        if not field_changed:
            continue
        merged[name] = value
        if not immutable:
            setattr(current, name, value)

    if not merged:
        return current, False
    if immutable:
        return _replace(current, merged), True
    return current, True


def rebuild_record(record: Any, fn: Callable[[Any], Any]) -> Any:
    """Build a new record of ``type(record)`` whose fields are ``fn(field)``.

    Used to derive both the zero value and the scratch copy of a record.
    """
    tp = type(record)
    names = record_fields(tp)
    if is_named_tuple(tp):
        return tp(*(fn(getattr(record, name)) for name in names))

    init_names = {f.name for f in dataclasses.fields(tp) if f.init}
    result = tp(**{name: fn(getattr(record, name)) for name in names if name in init_names})
    for name in names:
        if name not in init_names:
            setattr(result, name, fn(getattr(record, name)))
    return result


def _replace(record: Any, changes: dict[str, Any]) -> Any:
    if is_named_tuple(type(record)):
        return record._replace(**changes)
    return dataclasses.replace(record, **changes)

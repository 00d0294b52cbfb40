"""Structural recursion over mutable mappings.

The target mapping is updated toward the join with the source: keys missing
from the target are inserted, shared keys are joined, and keys only the target
has are left alone.  Entries are never merged in place; a scratch copy of the
target's entry absorbs the source's entry and replaces it only if it changed.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Mapping, MutableMapping
from typing import Any

type MergeFn = Callable[[Any, Any, str], tuple[Any, bool]]
type CopyFn = Callable[[Any], Any]


def empty_like[M: MutableMapping[Any, Any]](mapping: M) -> M:
    """Return an empty mapping of the same class (keeps ``defaultdict`` factories)."""
    if isinstance(mapping, defaultdict):
        return type(mapping)(mapping.default_factory)
    return type(mapping)()


def key_path(path: str, key: Any) -> str:
    return f"{path}[{key!r}]"


def merge_mapping(
    current: MutableMapping[Any, Any] | None,
    other: Mapping[Any, Any] | None,
    merge_value: MergeFn,
    copy_value: CopyFn,
    *,
    path: str = "",
) -> tuple[MutableMapping[Any, Any] | None, bool]:
    """Merge *other* into *current* key by key.

    ``None`` stands for an absent mapping.  An absent target is replaced by an
    empty mapping of *other*'s class before merging; an absent source has no
    keys.  Neither counts as a change by itself, since both are the bottom.

    Parameters
    ----------
    current : MutableMapping | None
        Target mapping, updated in place.
    other : Mapping | None
        Source mapping, read only.
    merge_value : MergeFn
        Recursive merge for ``(current_entry, other_entry, path)``.
    copy_value : CopyFn
        Builds a fresh copy of an entry that shares no mutable state with it.
    path : str
        Location of *current*, for error messages.

    Returns
    -------
    tuple[MutableMapping | None, bool]
        The merged mapping and the changed flag.

    Examples
    --------
    >>> target = {1: 0}
    >>> merge = lambda a, b, _: (max(a, b), b > a)
    >>> merge_mapping(target, {2: 0}, merge, lambda v: v)
    ({1: 0, 2: 0}, True)
    """
    if other is None:
        return current, False
    if current is None:
        current = empty_like(other)  # type: ignore[arg-type]

    changed = False
    for key, other_value in other.items():
        entry_path = key_path(path, key)
        if key not in current:
            current[key] = copy_value(other_value)
            changed = True
            continue

        scratch = copy_value(current[key])
        scratch, entry_changed = merge_value(scratch, other_value, entry_path)
        if entry_changed:
            current[key] = scratch
            changed = True
    return current, changed

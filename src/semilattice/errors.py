"""Contract violations raised by the merge engine.

Every error here is a programmer error: a type was used in a way the engine
cannot merge.  They are raised at the point of detection and never recovered
inside the engine.
"""

from __future__ import annotations


__all__ = [
    "ConfigError",
    "MergeError",
    "NonAddressableTargetError",
    "TypeMismatchError",
    "UnreachableFieldError",
    "UnsupportedTypeError",
]


class MergeError(TypeError):
    """Base class for all merge contract violations."""


class TypeMismatchError(MergeError):
    """Target and source are not the same type.

    Parameters
    ----------
    expected : type
        Type of the target (or of ``a`` in ``join``).
    actual : type
        Type of the source (or of ``b`` in ``join``).
    path : str
        Dotted location of the mismatch, ``""`` at the top level.

    Examples
    --------
    >>> err = TypeMismatchError(int, str, path="counts['a']")
    >>> str(err)
    "cannot merge str into int at counts['a']"
    """

    def __init__(self, expected: type, actual: type, *, path: str = "") -> None:
        self.expected = expected
        self.actual = actual
        self.path = path
        where = f" at {path}" if path else ""
        super().__init__(
            f"cannot merge {actual.__qualname__} into {expected.__qualname__}{where}"
        )


class NonAddressableTargetError(MergeError):
    """The merge target cannot be updated in place."""

    def __init__(self, target_type: type) -> None:
        self.target_type = target_type
        super().__init__(
            f"{target_type.__qualname__} cannot be merged in place; "
            f"wrap it in a Cell"
        )


class UnreachableFieldError(MergeError):
    """A record field is not part of the record's public contract."""

    def __init__(self, record_type: type, field_name: str) -> None:
        self.record_type = record_type
        self.field_name = field_name
        super().__init__(
            f"field {field_name!r} of {record_type.__qualname__} is not public; "
            f"implement __merge__ to merge it"
        )


class UnsupportedTypeError(MergeError):
    """No merge strategy (or zero value) exists for a type."""

    def __init__(self, tp: type, reason: str = "") -> None:
        self.type = tp
        detail = f": {reason}" if reason else ""
        super().__init__(f"don't know how to merge type {tp.__qualname__}{detail}")


class ConfigError(ValueError):
    """Invalid content in a ``semilattice.toml`` file."""

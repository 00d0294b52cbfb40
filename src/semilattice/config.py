"""TOML-based configuration for the merge engine.

Provides ``load_config`` / ``discover_config`` for loading
``semilattice.toml`` into a frozen ``MergeConfig``.  Configuration is never
read implicitly; apply it with ``semilattice.configure(load_config())`` or
``Engine(load_config(path))``.

Example file::

    [merge]
    precheck = true
    ordered_types = ["decimal.Decimal", "fractions.Fraction"]
"""

from __future__ import annotations

import importlib
import logging
import tomllib
from collections.abc import Mapping, Sequence, Set
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from semilattice.dispatch import ORDERED_TYPES, is_record_type
from semilattice.errors import ConfigError


__all__ = [
    "CONFIG_FILENAME",
    "MergeConfig",
    "discover_config",
    "load_config",
    "resolve_type",
]

logger = logging.getLogger("semilattice.config")

CONFIG_FILENAME = "semilattice.toml"


@dataclass(frozen=True)
class MergeConfig:
    """Merge engine settings.

    Parameters
    ----------
    precheck : bool
        Validate the whole merge before mutating anything, so a type
        mismatch deep inside a value leaves the target untouched.  When
        ``False`` the merge runs in a single pass and sub-merges completed
        before a failure stay applied.
    ordered_types : tuple[type, ...]
        Additional totally ordered types merged by maximum, on top of
        ``bool``, ``int``, ``float``, ``str`` and ``bytes``.  Their no-argument
        constructor must return the bottom value.  Collections, records,
        mappings and types with their own ``__merge__`` are rejected with
        ``ConfigError``.

    Examples
    --------
    >>> from decimal import Decimal
    >>> MergeConfig(ordered_types=(Decimal,))
    MergeConfig(precheck=True, ordered_types=(<class 'decimal.Decimal'>,))
    """

    precheck: bool = True
    ordered_types: tuple[type, ...] = ()

    def __post_init__(self) -> None:
        for tp in self.ordered_types:
            reason = _unordered_reason(tp)
            if reason is not None:
                logger.warning("Rejected ordered type %r: %s", tp, reason)
                msg = f"{tp!r} cannot be an ordered type: {reason}"
                raise ConfigError(msg)


def _unordered_reason(tp: object) -> str | None:
    if not isinstance(tp, type):
        return "not a class"
    if issubclass(tp, ORDERED_TYPES):
        return None
    if callable(getattr(tp, "__merge__", None)):
        return "it defines __merge__"
    if is_record_type(tp):
        return "records are merged fieldwise"
    if issubclass(tp, Mapping):
        return "mappings are merged keywise"
    if issubclass(tp, (Sequence, Set)):
        return "collections have no total order"
    return None


def resolve_type(name: str) -> type:
    """Import a class from its dotted name, e.g. ``"decimal.Decimal"``.

    Raises
    ------
    ConfigError
        If no module prefix of *name* imports, or the object is not a class.
    """
    parts = name.split(".")
    for i in range(len(parts) - 1, 0, -1):
        module_path = ".".join(parts[:i])
        try:
            obj: Any = importlib.import_module(module_path)
            for attr in parts[i:]:
                obj = getattr(obj, attr)
        except (ImportError, AttributeError):
            continue
        if not isinstance(obj, type):
            msg = f"{name} is not a class"
            raise ConfigError(msg)
        return obj
    logger.warning("Failed to resolve type: %s", name)
    msg = f"Cannot resolve type: {name}"
    raise ConfigError(msg)


def discover_config(start: Path | None = None) -> Path | None:
    """Return the nearest ``semilattice.toml`` in *start* or one of its parents.

    *start* defaults to the working directory.  Nothing calls this implicitly:
    the default engine never reads files, so discovery only happens through an
    explicit ``load_config()``.
    """
    directory = (start or Path.cwd()).resolve()
    for candidate in (d / CONFIG_FILENAME for d in (directory, *directory.parents)):
        if candidate.is_file():
            logger.debug("Discovered config at %s", candidate)
            return candidate
    return None


def load_config(path: Path | None = None) -> MergeConfig:
    """Load a ``MergeConfig`` from a TOML file.

    If *path* is ``None``, auto-discovers ``semilattice.toml`` by walking up
    from the current working directory.  Returns the default config if no
    file is found.

    Parameters
    ----------
    path : Path | None
        Explicit path to a TOML config file.

    Returns
    -------
    MergeConfig

    Raises
    ------
    FileNotFoundError
        If an explicit *path* is given but does not exist.
    ConfigError
        If the ``[merge]`` table holds values of the wrong type or names a
        type that cannot be imported or is not totally ordered.
    """
    if path is None:
        discovered = discover_config()
        if discovered is None:
            return MergeConfig()
        path = discovered

    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open("rb") as f:
        raw = tomllib.load(f)

    merge_raw: dict[str, Any] = raw.get("merge", {})
    unknown = set(merge_raw) - {"precheck", "ordered_types"}
    if unknown:
        msg = f"Unknown [merge] keys in {path}: {', '.join(sorted(unknown))}"
        raise ConfigError(msg)

    precheck = merge_raw.get("precheck", True)
    if not isinstance(precheck, bool):
        msg = f"[merge] precheck must be a boolean, got {precheck!r}"
        raise ConfigError(msg)

    names = merge_raw.get("ordered_types", [])
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        msg = f"[merge] ordered_types must be a list of dotted names, got {names!r}"
        raise ConfigError(msg)

    config = MergeConfig(
        precheck=precheck,
        ordered_types=tuple(resolve_type(n) for n in names),
    )
    logger.debug("Loaded config from %s: %s", path, config)
    return config

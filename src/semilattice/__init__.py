"""Generic merge for join-semilattices, the structure underlying CRDTs.

``join(a, b)`` computes the least upper bound of two values of the same
type; ``merge(target, source)`` updates *target* in place to it.  Merges are
done as follows:

* if the type implements ``__merge__`` (``Mergeable``), that is used;
* dataclasses and named tuples are merged fieldwise;
* mutable mappings are merged keywise;
* ``bool``, ``int``, ``float``, ``str`` and ``bytes`` take the maximum;
* anything else raises ``UnsupportedTypeError``.

The zero value of a type is its bottom element: ``join(a, zero_value(a))``
is ``a``.
"""

from semilattice.config import MergeConfig, discover_config, load_config
from semilattice.dispatch import Mergeable, Strategy, is_mergeable, resolve_strategy
from semilattice.engine import (
    Cell,
    Engine,
    check,
    configure,
    default_engine,
    join,
    join_all,
    merge,
    zero_value,
)
from semilattice.errors import (
    ConfigError,
    MergeError,
    NonAddressableTargetError,
    TypeMismatchError,
    UnreachableFieldError,
    UnsupportedTypeError,
)

__all__ = [
    # Operations
    "merge",
    "join",
    "join_all",
    "zero_value",
    "check",
    # Engine
    "Cell",
    "Engine",
    "configure",
    "default_engine",
    # Dispatch
    "Mergeable",
    "Strategy",
    "is_mergeable",
    "resolve_strategy",
    # Configuration
    "MergeConfig",
    "discover_config",
    "load_config",
    # Errors
    "ConfigError",
    "MergeError",
    "NonAddressableTargetError",
    "TypeMismatchError",
    "UnreachableFieldError",
    "UnsupportedTypeError",
]

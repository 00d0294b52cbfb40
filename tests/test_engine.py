from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field

import pytest

from semilattice import (
    Cell,
    Engine,
    MergeError,
    NonAddressableTargetError,
    TypeMismatchError,
    UnsupportedTypeError,
    check,
    join,
    join_all,
    merge,
    zero_value,
)


@dataclass
class Document:
    title: str = ""
    revision: int = 0
    published: bool = False
    votes: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class Version:
    major: int = 0


@dataclass
class Mixed:
    first: int = 0
    second: object = 0


SAMPLES = [
    Document(),
    Document("a", 1, False, {"x": 1}),
    Document("b", 0, True, {"x": 0, "y": 2}),
    Document("", 3, False, {"z": 5}),
]


# ---------------------------------------------------------------------------
# Semilattice laws
# ---------------------------------------------------------------------------


class TestLaws:
    def test_commutative(self) -> None:
        for a, b in itertools.product(SAMPLES, repeat=2):
            assert join(a, b) == join(b, a)

    def test_associative(self) -> None:
        for a, b, c in itertools.product(SAMPLES, repeat=3):
            assert join(join(a, b), c) == join(a, join(b, c))

    def test_idempotent(self) -> None:
        for x in SAMPLES:
            y = join(x, x)
            assert y == x
            assert merge(y, x) is False
            assert y == x

    def test_zero_is_bottom(self) -> None:
        for x in SAMPLES:
            assert join(x, zero_value(x)) == x
            assert join(zero_value(x), x) == x

    def test_changed_flag_matches_value_change(self) -> None:
        for a, b in itertools.product(SAMPLES, repeat=2):
            target = join(a, zero_value(a))
            before = join(a, zero_value(a))
            changed = merge(target, b)
            assert changed == (target != before)

    def test_join_does_not_mutate_inputs(self) -> None:
        a = Document("a", 1, False, {"x": 1})
        b = Document("b", 0, True, {"y": 2})
        result = join(a, b)
        assert result == Document("b", 1, True, {"x": 1, "y": 2})
        assert a == Document("a", 1, False, {"x": 1})
        assert b == Document("b", 0, True, {"y": 2})
        assert result.votes is not a.votes


class TestJoinAll:
    def test_folds_all_values(self) -> None:
        assert join_all([{"a": 1}, {"b": 2}, {"a": 3}]) == {"a": 3, "b": 2}

    def test_order_does_not_matter(self) -> None:
        results = [join_all(p) for p in itertools.permutations(SAMPLES)]
        assert all(r == results[0] for r in results)

    def test_single_value_is_copied(self) -> None:
        votes = {"x": 1}
        result = join_all([votes])
        assert result == votes
        assert result is not votes

    def test_empty_raises(self) -> None:
        with pytest.raises(ValueError):
            join_all([])


# ---------------------------------------------------------------------------
# Contract violations
# ---------------------------------------------------------------------------


class TestErrors:
    def test_errors_are_type_errors(self) -> None:
        assert issubclass(MergeError, TypeError)

    def test_join_type_mismatch(self) -> None:
        with pytest.raises(TypeMismatchError) as exc_info:
            join(1, "a")
        assert exc_info.value.expected is int
        assert exc_info.value.actual is str
        assert exc_info.value.path == ""

    def test_merge_type_mismatch(self) -> None:
        with pytest.raises(TypeMismatchError):
            merge({"a": 1}, Document())

    def test_none_target(self) -> None:
        with pytest.raises(NonAddressableTargetError):
            merge(None, {})

    def test_string_target(self) -> None:
        with pytest.raises(NonAddressableTargetError):
            merge("abc", "abd")

    def test_unsupported_types(self) -> None:
        with pytest.raises(UnsupportedTypeError):
            merge([1], [2])
        with pytest.raises(UnsupportedTypeError):
            join((1,), (2,))
        with pytest.raises(UnsupportedTypeError):
            join({1}, {2})


# ---------------------------------------------------------------------------
# Validation before mutation
# ---------------------------------------------------------------------------


class TestPrecheck:
    def test_failed_merge_leaves_target_untouched(self) -> None:
        target = Mixed(0, 0)
        with pytest.raises(TypeMismatchError) as exc_info:
            merge(target, Mixed(5, "x"))
        assert exc_info.value.path == "second"
        assert target == Mixed(0, 0)

    def test_single_pass_applies_earlier_fields(self, single_pass: Engine) -> None:
        target = Mixed(0, 0)
        with pytest.raises(TypeMismatchError):
            single_pass.merge(target, Mixed(5, "x"))
        assert target.first == 5

    def test_failed_mapping_merge_leaves_target_untouched(self) -> None:
        target = {"a": 1, "b": 1}
        with pytest.raises(TypeMismatchError):
            merge(target, {"a": 2, "b": "x"})
        assert target == {"a": 1, "b": 1}

    def test_check_does_not_mutate(self) -> None:
        target = {"a": 1}
        check(target, {"a": 2, "b": 3})
        assert target == {"a": 1}

    def test_check_unwraps_cell(self) -> None:
        check(Cell(1), 2)
        with pytest.raises(TypeMismatchError):
            check(Cell(1), "2")

    def test_check_raises_like_merge(self) -> None:
        with pytest.raises(TypeMismatchError):
            check(Mixed(), Mixed(1, "x"))

    @pytest.mark.parametrize(
        ("target", "source"),
        [(3, 5), (None, {}), ("abc", "abd"), (Version(1), Version(2))],
    )
    def test_check_rejects_what_merge_rejects(
        self, target: object, source: object
    ) -> None:
        with pytest.raises(NonAddressableTargetError):
            check(target, source)
        with pytest.raises(NonAddressableTargetError):
            merge(target, source)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class TestLogging:
    def test_strategy_resolution_logged_once(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="semilattice")
        engine = Engine()
        engine.join(1, 2)
        engine.join(3, 4)
        resolved = [r for r in caplog.records if r.getMessage() == "Resolved int -> scalar"]
        assert len(resolved) == 1

    def test_mismatch_logged_as_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.WARNING, logger="semilattice")
        with pytest.raises(TypeMismatchError):
            join(1, "a")
        assert any(
            r.name == "semilattice.engine" and r.levelno == logging.WARNING
            for r in caplog.records
        )

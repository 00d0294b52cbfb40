"""Shared fixtures for semilattice tests."""

import pytest

from semilattice import Engine, MergeConfig, configure


@pytest.fixture(autouse=True)
def default_engine():
    """Give every test a fresh default engine with default settings."""
    yield configure(MergeConfig())
    configure(MergeConfig())


@pytest.fixture
def single_pass() -> Engine:
    """Engine that merges without validating first."""
    return Engine(MergeConfig(precheck=False))

"""Shared test fixtures for the rollwright test suite.

Dice are scripted with IteratorDiceRollSource so every roll is exact. The
``scripted`` fixture builds one from a list of faces.
"""

from __future__ import annotations

import os

import pytest

from rollwright.config import Settings
from rollwright.sources import IteratorDiceRollSource


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep ROLLWRIGHT_* variables from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("ROLLWRIGHT_"):
            monkeypatch.delenv(name)


@pytest.fixture
def scripted():
    """Return a factory for scripted dice sources."""

    def _make(*faces: int) -> IteratorDiceRollSource:
        return IteratorDiceRollSource(faces)

    return _make


@pytest.fixture
def limits() -> Settings:
    """Default limits, independent of any .env file in the working directory."""
    return Settings(_env_file=None)

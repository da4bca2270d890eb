"""
Shared fixtures for the test suite.
"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from rules.catalog import build_catalog
from rules.chance import RandomChoice
from rules.engine import ResponseEngine


class ScriptedSource:
    """Random source replaying fixed integer and float draws."""

    def __init__(self, ints=(), floats=()):
        self.ints = list(ints)
        self.floats = list(floats)

    def randint(self, a, b):
        value = self.ints.pop(0)
        assert a <= value <= b, f"scripted {value} outside [{a}, {b}]"
        return value

    def random(self):
        return self.floats.pop(0)


@pytest.fixture
def scripted():
    """Factory for scripted random choosers."""
    def make(ints=(), floats=()):
        return RandomChoice(ScriptedSource(ints, floats))
    return make


@pytest.fixture
def catalog():
    return build_catalog({})


@pytest.fixture
def engine(catalog):
    return ResponseEngine(catalog.categories, catalog.stock, RandomChoice.seeded(1234))

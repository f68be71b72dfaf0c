"""
Test configuration and fixtures
"""

from typing import Optional

import pytest

from record import registry


class FakeExecutor:
    """Records every statement instead of talking to a database."""

    def __init__(self):
        self.calls: list[tuple[str, str, list]] = []
        self.rows: list[dict] = []
        self.first: Optional[dict] = None
        self.scalar = 0
        self.key = 1
        self.error: Optional[Exception] = None

    def _record(self, kind, sql, params):
        self.calls.append((kind, sql, list(params)))
        if self.error is not None:
            raise self.error

    def fetch_all(self, sql, params=()):
        self._record("all", sql, params)
        return self.rows

    def fetch_first(self, sql, params=()):
        self._record("first", sql, params)
        return self.first

    def fetch_scalar(self, sql, params=()):
        self._record("scalar", sql, params)
        return self.scalar

    def insert(self, sql, params, key_column):
        self._record(f"insert:{key_column}", sql, params)
        return self.key

    @property
    def last(self):
        return self.calls[-1]


@pytest.fixture
def executor():
    """Install a FakeExecutor with an empty table prefix."""
    fake = FakeExecutor()
    registry.configure(fake, table_prefix="")
    yield fake
    registry.reset()


@pytest.fixture
def no_executor():
    """Leave the registry without an executor."""
    registry.reset()
    yield
    registry.reset()

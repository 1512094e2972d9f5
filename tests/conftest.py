import os
import sys

import pytest

# Ensure repository root is on path
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from lazy_iterator import END_OF_DATA, LazyIterator


class RecordingSource(LazyIterator):
    """List-backed iterator that records how it is driven."""

    def __init__(self, items, *, fail_at=None, error=None, close_error=None, name="source", log=None):
        super().__init__()
        self.items = list(items)
        self.fail_at = fail_at
        self.error = error or ValueError(f"{name} failed")
        self.close_error = close_error
        self.name = name
        self.log = log if log is not None else []
        self.index = 0
        self.computes = 0
        self.next_calls = 0
        self.closes = 0

    def _compute_next(self):
        self.computes += 1
        if self.fail_at is not None and self.index == self.fail_at:
            raise self.error
        if self.index >= len(self.items):
            return END_OF_DATA
        item = self.items[self.index]
        self.index += 1
        self.log.append(("pull", self.name, item))
        return item

    def next(self):
        self.next_calls += 1
        return super().next()

    def _release(self):
        self.closes += 1
        self.log.append(("close", self.name))
        if self.close_error is not None:
            raise self.close_error


@pytest.fixture
def make_source():
    """Factory for RecordingSource instances."""
    return RecordingSource

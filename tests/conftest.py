"""Shared fixtures."""

import os
import tempfile

import pytest

from core2.repo import Repositories
from core2.storage.sqlite_store import SQLiteEntityStore


@pytest.fixture
def repos():
    """Repositories over a temporary store."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    store = SQLiteEntityStore(path)
    yield Repositories.for_store(store)
    store.close()
    os.unlink(path)

"""
Shared fixtures for the test suite.

``store`` runs each test against both backends: SQLite in a temporary
directory and MongoDB through mongomock.  ``RecordingStore`` wraps a
store and records every call so tests can check which writes happened
and in which order.
"""

import os
import tempfile

import mongomock
import pytest

from academic_records_api.app.core.db import SqliteEntityStore
from academic_records_api.app.core.mongo import MongoEntityStore
from academic_records_api.app.core.security import Identity

WRITE_OPERATIONS = frozenset(
    {
        "create",
        "update_by_id",
        "delete_by_id",
        "pull_from_array_field",
        "add_to_set_field",
        "remove_from_set_field",
    }
)


class RecordingStore:
    """Delegates to another store and records the calls made to it."""

    def __init__(self, inner):
        self.inner = inner
        self.calls = []

    def __getattr__(self, name):
        attr = getattr(self.inner, name)
        if not callable(attr):
            return attr

        def recorded(*args, **kwargs):
            self.calls.append((name, args))
            return attr(*args, **kwargs)

        return recorded

    @property
    def writes(self):
        return [call for call in self.calls if call[0] in WRITE_OPERATIONS]


@pytest.fixture
def data_dir():
    """Create temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def sqlite_store(data_dir):
    store = SqliteEntityStore(os.path.join(data_dir, "records.db"))
    store.initialize()
    return store


@pytest.fixture
def mongo_store():
    store = MongoEntityStore(mongomock.MongoClient(), "academic_records_test")
    store.initialize()
    return store


@pytest.fixture(params=["sqlite", "mongo"])
def store(request):
    """Initialised store for each backend."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def identity():
    return Identity(id="user-1", email="registrar@example.com")

"""
Pytest fixtures for mongo-query tests.

Provides in-memory stand-ins for PyMongo databases, collections and
cursors that record how they were driven, so queries can be executed
without a MongoDB server.
"""

from __future__ import annotations

from typing import Any, Iterator, Mapping

import pytest


class FakeCursor:
    """Mock for pymongo.cursor.Cursor."""

    def __init__(
        self,
        documents: list[Any],
        fail_at: int | None = None,
        error: Exception | None = None,
        close_error: Exception | None = None,
    ) -> None:
        self._documents = documents
        self._fail_at = fail_at
        self._error = error
        self._close_error = close_error
        self._query_flags = 0
        self.calls: list[tuple[str, Any]] = []
        self.close_count = 0
        self.yielded = 0

    def _record(self, name: str, value: Any) -> FakeCursor:
        self.calls.append((name, value))
        return self

    def limit(self, limit: int) -> FakeCursor:
        return self._record("limit", limit)

    def skip(self, skip: int) -> FakeCursor:
        return self._record("skip", skip)

    def batch_size(self, batch_size: int) -> FakeCursor:
        return self._record("batch_size", batch_size)

    def sort(self, key_or_list: Any) -> FakeCursor:
        return self._record("sort", key_or_list)

    def hint(self, index: Any) -> FakeCursor:
        return self._record("hint", index)

    def max_time_ms(self, max_time_ms: int) -> FakeCursor:
        if not isinstance(max_time_ms, int):
            raise TypeError("max_time_ms must be an integer or None")
        return self._record("max_time_ms", max_time_ms)

    def add_option(self, mask: int) -> FakeCursor:
        if not isinstance(mask, int):
            raise TypeError("mask must be an int")
        self._query_flags |= mask
        return self._record("add_option", mask)

    def remove_option(self, mask: int) -> FakeCursor:
        self._query_flags &= ~mask
        return self._record("remove_option", mask)

    def close(self) -> None:
        self.close_count += 1
        if self._close_error is not None:
            raise self._close_error

    def __iter__(self) -> Iterator[Any]:
        for position, document in enumerate(self._documents):
            if self._fail_at is not None and position == self._fail_at:
                raise self._error or RuntimeError("cursor failed")
            self.yielded += 1
            yield document

    @property
    def modifier_names(self) -> list[str]:
        """Names of the modifiers applied, in order."""
        return [name for name, _ in self.calls]


class FakeCollection:
    """Mock for pymongo.collection.Collection."""

    def __init__(self, name: str, documents: list[Any] | None = None) -> None:
        self.name = name
        self.full_name = f"testdb.{name}"
        self.documents: list[Any] = documents if documents is not None else []
        self.read_preference: Any = None
        self.cursors: list[FakeCursor] = []
        self.find_calls: list[tuple[Any, Any]] = []
        self.cursor_kwargs: dict[str, Any] = {}
        self.derived: list[FakeCollection] = []
        self.find_error: Exception | None = None

    def find(self, filter: Mapping[str, Any] | None = None, projection: Any = None) -> FakeCursor:
        self.find_calls.append((filter, projection))
        if self.find_error is not None:
            raise self.find_error
        cursor = FakeCursor(self.documents, **self.cursor_kwargs)
        self.cursors.append(cursor)
        return cursor

    def find_one(self, filter: Mapping[str, Any] | None = None, projection: Any = None) -> Any:
        self.find_calls.append((filter, projection))
        for document in self.documents:
            if all(document.get(key) == value for key, value in (filter or {}).items()):
                return document
        return None

    def with_options(self, read_preference: Any = None) -> FakeCollection:
        clone = FakeCollection(self.name, self.documents)
        clone.read_preference = read_preference
        clone.cursor_kwargs = self.cursor_kwargs
        clone.cursors = self.cursors
        clone.find_calls = self.find_calls
        self.derived.append(clone)
        return clone

    @property
    def last_cursor(self) -> FakeCursor:
        return self.cursors[-1]


class FakeDatabase:
    """Mock for pymongo.database.Database."""

    def __init__(self) -> None:
        self.name = "testdb"
        self.collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]


@pytest.fixture(autouse=True)
def clean_config(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run every test against default configuration."""
    from mongo_query import set_config

    for name in ("MONGO_QUERY_BATCH_SIZE", "MONGO_QUERY_KEYWORDIZE", "MONGO_URL", "MONGO_DB_NAME"):
        monkeypatch.delenv(name, raising=False)
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def database() -> FakeDatabase:
    """Create an empty fake database."""
    return FakeDatabase()


@pytest.fixture
def users(database: FakeDatabase) -> FakeCollection:
    """Create a collection with five user documents."""
    collection = database["users"]
    collection.documents.extend(
        [
            {"_id": 1, "name": "Alice", "age": 30, "address": {"city": "Oslo"}},
            {"_id": 2, "name": "Bob", "age": 25, "address": {"city": "Lima"}},
            {"_id": 3, "name": "Charlie", "age": 35, "address": {"city": "Pune"}},
            {"_id": 4, "name": "Dana", "age": 28, "address": {"city": "Kyiv"}},
            {"_id": 5, "name": "Eve", "age": 41, "address": {"city": "Rome"}},
        ]
    )
    return collection


@pytest.fixture
def cursor() -> FakeCursor:
    """Create a cursor over no documents."""
    return FakeCursor([])


@pytest.fixture
def cursor_factory() -> type[FakeCursor]:
    """Return the fake cursor class for tests that need custom behaviour."""
    return FakeCursor

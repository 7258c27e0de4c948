"""
Unit tests for storage layer.

Tests schema creation and record persistence for both store implementations.
"""

import os
import tempfile
from datetime import datetime

import pytest

from ai_guidebook.storage.db import get_connection
from ai_guidebook.storage.models import UsageRecordInput
from ai_guidebook.storage.repository import (
    InMemoryRecordStore,
    SQLiteRecordStore,
    get_repository,
    initialize_schema,
    reset_repository,
)


def _input(**overrides) -> UsageRecordInput:
    values = dict(
        assignment_title="CS101 | Essay | Climate Change",
        date_of_use="2024-03-01",
        tool="ChatGPT",
        purpose_category="Brainstorming",
    )
    values.update(overrides)
    return UsageRecordInput(**values)


@pytest.fixture
def db_path():
    with tempfile.TemporaryDirectory() as temp_dir:
        yield os.path.join(temp_dir, "test.db")


@pytest.fixture(params=["sqlite", "memory"])
def store(request, db_path):
    """Each store test runs against both implementations."""
    if request.param == "sqlite":
        return SQLiteRecordStore(db_path)
    return InMemoryRecordStore()


class TestStorageSchema:
    """Test database schema creation and structure."""

    def test_schema_creation(self, db_path):
        """Verify table is created with the expected columns."""
        initialize_schema(db_path)

        conn = get_connection(db_path)
        try:
            tables = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='logs'"
            ).fetchall()
            assert len(tables) == 1

            columns = conn.execute("PRAGMA table_info(logs)").fetchall()
            column_names = [col[1] for col in columns]
            assert column_names == [
                'id', 'assignmentTitle', 'dateOfUse', 'tool', 'purposeCategory',
                'optionalExplanation', 'promptQueryUsed', 'outputReceived',
                'modifiedOutput', 'createdAt'
            ]
        finally:
            conn.close()

    def test_schema_creation_is_idempotent(self, db_path):
        """Running the schema twice keeps existing rows."""
        store = SQLiteRecordStore(db_path)
        store.insert(_input(), datetime(2024, 3, 1, 12, 0, 0))

        initialize_schema(db_path)

        assert len(store.fetch_all()) == 1

    def test_created_at_defaults_when_not_supplied(self, db_path):
        """Rows written without createdAt get a database timestamp."""
        initialize_schema(db_path)
        conn = get_connection(db_path)
        try:
            conn.execute(
                "INSERT INTO logs (assignmentTitle, dateOfUse, tool, purposeCategory) "
                "VALUES (?, ?, ?, ?)",
                ("Essay", "2024-03-01", "Claude", "Drafting"),
            )
            conn.commit()
        finally:
            conn.close()

        records = SQLiteRecordStore(db_path, create_schema=False).fetch_all()
        assert len(records) == 1
        assert isinstance(records[0].created_at, datetime)

    def test_ordering_mixes_database_and_written_timestamps(self, db_path):
        """Database-default and store-written timestamps sort together."""
        store = SQLiteRecordStore(db_path)
        conn = get_connection(db_path)
        try:
            conn.execute(
                "INSERT INTO logs (assignmentTitle, dateOfUse, tool, purposeCategory, createdAt) "
                "VALUES (?, ?, ?, ?, ?)",
                ("Essay", "2024-03-01", "Claude", "Drafting", "2024-03-01 12:00:00"),
            )
            conn.commit()
        finally:
            conn.close()
        # Earlier in the day than the default-format row, so it sorts last
        store.insert(_input(tool="ChatGPT"), datetime(2024, 3, 1, 9, 0, 0))
        store.insert(_input(tool="Gemini"), datetime(2024, 3, 1, 12, 0, 1))

        tools = [record.tool for record in store.fetch_all()]
        assert tools == ["Gemini", "Claude", "ChatGPT"]


class TestRecordStore:
    """Behaviour shared by the SQLite and in-memory stores."""

    def test_insert_assigns_id_and_created_at(self, store):
        created_at = datetime(2024, 3, 1, 12, 0, 0)
        record = store.insert(_input(optional_explanation="Outline"), created_at)

        assert record.id == 1
        assert record.created_at == created_at
        assert record.optional_explanation == "Outline"
        assert record.prompt_query_used is None

    def test_fetch_all_newest_first(self, store):
        store.insert(_input(tool="ChatGPT"), datetime(2024, 3, 1, 12, 0, 0))
        store.insert(_input(tool="Claude"), datetime(2024, 3, 2, 12, 0, 0))
        store.insert(_input(tool="Gemini"), datetime(2024, 3, 1, 18, 0, 0))

        tools = [record.tool for record in store.fetch_all()]
        assert tools == ["Claude", "Gemini", "ChatGPT"]

    def test_same_created_at_orders_by_id(self, store):
        created_at = datetime(2024, 3, 1, 12, 0, 0)
        first = store.insert(_input(), created_at)
        second = store.insert(_input(), created_at)

        assert [r.id for r in store.fetch_all()] == [second.id, first.id]

    def test_fetch_round_trip(self, store):
        data = _input(
            optional_explanation="Outline",
            prompt_query_used="Give me an outline",
            output_received="Five headings",
            modified_output="",
        )
        created = store.insert(data, datetime(2024, 3, 1, 12, 0, 0))

        fetched = store.fetch(created.id)
        assert fetched == created
        # Empty string stays distinct from "absent"
        assert fetched.modified_output == ""

    def test_fetch_missing_returns_none(self, store):
        assert store.fetch(42) is None

    def test_replace_keeps_id_and_created_at(self, store):
        created_at = datetime(2024, 3, 1, 12, 0, 0)
        original = store.insert(_input(optional_explanation="Old"), created_at)

        updated = store.replace(original.id, _input(tool="Claude", date_of_use="2024-04-01"))

        assert updated.id == original.id
        assert updated.created_at == created_at
        assert updated.tool == "Claude"
        assert updated.date_of_use == "2024-04-01"
        assert updated.optional_explanation is None
        assert store.fetch(original.id) == updated

    def test_replace_missing_returns_none(self, store):
        assert store.replace(7, _input()) is None

    def test_delete(self, store):
        record = store.insert(_input(), datetime(2024, 3, 1, 12, 0, 0))

        assert store.delete(record.id) is True
        assert store.fetch(record.id) is None
        assert store.delete(record.id) is False

    def test_ids_are_never_reused(self, store):
        store.insert(_input(), datetime(2024, 3, 1, 12, 0, 0))
        second = store.insert(_input(), datetime(2024, 3, 1, 12, 1, 0))
        store.delete(second.id)

        third = store.insert(_input(), datetime(2024, 3, 1, 12, 2, 0))
        assert third.id == second.id + 1


class TestPersistence:
    """Test data survives across store instances."""

    def test_records_persist_across_connections(self, db_path):
        SQLiteRecordStore(db_path).insert(_input(), datetime(2024, 3, 1, 12, 0, 0))

        records = SQLiteRecordStore(db_path).fetch_all()
        assert len(records) == 1
        assert records[0].assignment_title == "CS101 | Essay | Climate Change"

    def test_get_repository_caches_per_path(self, db_path):
        reset_repository()
        try:
            first = get_repository(db_path)
            assert get_repository(db_path) is first
            assert first.db_path == db_path
        finally:
            reset_repository()

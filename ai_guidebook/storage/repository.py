"""
Repository pattern for data access.

Handles persistence of usage records. Two stores share one interface:
``SQLiteRecordStore`` for the single-table database and
``InMemoryRecordStore`` for tests and throwaway sessions.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional
import sqlite3

from .db import DEFAULT_DB_PATH, get_connection
from .models import COLUMN_NAMES, UsageRecord, UsageRecordInput

logger = logging.getLogger(__name__)

TABLE_NAME = "logs"

_WRITE_FIELDS = [
    "assignment_title",
    "date_of_use",
    "tool",
    "purpose_category",
    "optional_explanation",
    "prompt_query_used",
    "output_received",
    "modified_output",
]
_WRITE_COLUMNS = [COLUMN_NAMES[name] for name in _WRITE_FIELDS]
_SELECT_COLUMNS = ", ".join(COLUMN_NAMES.values())


class RecordStore(ABC):
    """Storage interface consumed by the record service."""

    @abstractmethod
    def insert(self, data: UsageRecordInput, created_at: datetime) -> UsageRecord:
        """Persist a new record and return it with its assigned id."""

    @abstractmethod
    def fetch_all(self) -> List[UsageRecord]:
        """Return every record, newest ``created_at`` first."""

    @abstractmethod
    def fetch(self, record_id: int) -> Optional[UsageRecord]:
        """Return one record, or None if it does not exist."""

    @abstractmethod
    def replace(self, record_id: int, data: UsageRecordInput) -> Optional[UsageRecord]:
        """Overwrite all mutable fields of a record.

        Returns:
            The updated record, or None if no record has this id
        """

    @abstractmethod
    def delete(self, record_id: int) -> bool:
        """Remove a record. Returns False if it did not exist."""


def _sort_newest_first(records: List[UsageRecord]) -> List[UsageRecord]:
    return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)


def _row_to_record(row: sqlite3.Row) -> UsageRecord:
    return UsageRecord(
        id=row["id"],
        assignment_title=row["assignmentTitle"],
        date_of_use=row["dateOfUse"],
        tool=row["tool"],
        purpose_category=row["purposeCategory"],
        optional_explanation=row["optionalExplanation"],
        prompt_query_used=row["promptQueryUsed"],
        output_received=row["outputReceived"],
        modified_output=row["modifiedOutput"],
        created_at=datetime.fromisoformat(row["createdAt"]),
    )


def _write_values(data: UsageRecordInput) -> List[Optional[str]]:
    return [getattr(data, name) for name in _WRITE_FIELDS]


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the logs table if it doesn't exist.

    ``AUTOINCREMENT`` keeps ids from being reused after a delete.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                assignmentTitle TEXT NOT NULL,
                dateOfUse TEXT NOT NULL,
                tool TEXT NOT NULL,
                purposeCategory TEXT NOT NULL,
                optionalExplanation TEXT,
                promptQueryUsed TEXT,
                outputReceived TEXT,
                modifiedOutput TEXT,
                createdAt TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)
        conn.commit()
    finally:
        conn.close()
    logger.debug("Schema ready in %s", db_path)


class SQLiteRecordStore(RecordStore):
    """Usage record store backed by a single SQLite table.

    Every operation opens its own connection and runs in its own
    transaction, so a failed write never leaves a half-written row.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH, create_schema: bool = True):
        """Initialize the store with a database path.

        Args:
            db_path: Path to SQLite database file
            create_schema: Create the table on construction if missing
        """
        self.db_path = db_path
        if create_schema:
            initialize_schema(db_path)

    def insert(self, data: UsageRecordInput, created_at: datetime) -> UsageRecord:
        placeholders = ", ".join("?" for _ in range(len(_WRITE_COLUMNS) + 1))
        columns = ", ".join(_WRITE_COLUMNS + ["createdAt"])
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                f"INSERT INTO {TABLE_NAME} ({columns}) VALUES ({placeholders})",
                _write_values(data) + [created_at.isoformat(sep=" ")],
            )
            conn.commit()
            record_id = cursor.lastrowid
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        return UsageRecord.from_input(record_id, created_at, data)

    def fetch_all(self) -> List[UsageRecord]:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM {TABLE_NAME} "
                "ORDER BY createdAt DESC, id DESC"
            )
            return [_row_to_record(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def fetch(self, record_id: int) -> Optional[UsageRecord]:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM {TABLE_NAME} WHERE id = ?",
                (record_id,),
            )
            row = cursor.fetchone()
            return _row_to_record(row) if row is not None else None
        finally:
            conn.close()

    def replace(self, record_id: int, data: UsageRecordInput) -> Optional[UsageRecord]:
        assignments = ", ".join(f"{column} = ?" for column in _WRITE_COLUMNS)
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                f"UPDATE {TABLE_NAME} SET {assignments} WHERE id = ?",
                _write_values(data) + [record_id],
            )
            if cursor.rowcount == 0:
                conn.rollback()
                return None
            row = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM {TABLE_NAME} WHERE id = ?",
                (record_id,),
            ).fetchone()
            conn.commit()
            return _row_to_record(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def delete(self, record_id: int) -> bool:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                f"DELETE FROM {TABLE_NAME} WHERE id = ?", (record_id,)
            )
            conn.commit()
            return cursor.rowcount > 0
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


class InMemoryRecordStore(RecordStore):
    """Store that keeps records in a dict for the lifetime of the object."""

    def __init__(self):
        self._records: Dict[int, UsageRecord] = {}
        self._last_id = 0

    def insert(self, data: UsageRecordInput, created_at: datetime) -> UsageRecord:
        self._last_id += 1
        record = UsageRecord.from_input(self._last_id, created_at, data)
        self._records[record.id] = record
        return record

    def fetch_all(self) -> List[UsageRecord]:
        return _sort_newest_first(list(self._records.values()))

    def fetch(self, record_id: int) -> Optional[UsageRecord]:
        return self._records.get(record_id)

    def replace(self, record_id: int, data: UsageRecordInput) -> Optional[UsageRecord]:
        existing = self._records.get(record_id)
        if existing is None:
            return None
        record = UsageRecord.from_input(existing.id, existing.created_at, data)
        self._records[record_id] = record
        return record

    def delete(self, record_id: int) -> bool:
        return self._records.pop(record_id, None) is not None


# Global repository instance
_default_store: Optional[SQLiteRecordStore] = None


def get_repository(db_path: str = DEFAULT_DB_PATH) -> SQLiteRecordStore:
    """Get the shared SQLite store for a database path.

    The instance is cached; asking for a different path replaces it.

    Args:
        db_path: Path to SQLite database file

    Returns:
        An instance of SQLiteRecordStore
    """
    global _default_store
    if _default_store is None or _default_store.db_path != db_path:
        _default_store = SQLiteRecordStore(db_path)
    return _default_store


def reset_repository() -> None:
    """Drop the cached store so the next call re-opens it."""
    global _default_store
    _default_store = None

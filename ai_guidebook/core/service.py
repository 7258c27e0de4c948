"""
Record service.

The read/write boundary used by the CLI. Validates input, assigns ids and
creation timestamps through the injected store, and translates storage
failures into the GuidebookError family.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Mapping, Sequence

from .errors import (
    PartialBatchError,
    RecordNotFoundError,
    StorageError,
    ValidationError,
)
from .validation import parse_record_id, validate_payload
from ai_guidebook.storage.models import UsageRecord, UsageRecordInput
from ai_guidebook.storage.repository import RecordStore

logger = logging.getLogger(__name__)


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    """Re-raise low-level storage failures as StorageError."""
    try:
        yield
    except (sqlite3.Error, OSError) as e:
        logger.error("Storage failure during %s: %s", operation, e)
        raise StorageError(f"Storage failure during {operation}: {e}") from e


class RecordService:
    """CRUD operations over usage records.

    Each call is an independent unit of work against the store. Bulk
    operations are sequences of single-record calls and report partial
    failure with PartialBatchError.
    """

    def __init__(self, store: RecordStore, clock: Callable[[], datetime] = datetime.now):
        """Initialize the service.

        Args:
            store: Record store to read from and write to
            clock: Source of creation timestamps
        """
        self.store = store
        self.clock = clock

    def health(self) -> Dict[str, str]:
        """Liveness check."""
        return {"status": "ok"}

    def list(self) -> List[UsageRecord]:
        """Return all records, most recently created first."""
        with _storage_errors("list"):
            return self.store.fetch_all()

    def get(self, record_id: Any) -> UsageRecord:
        """Return a single record.

        Raises:
            InvalidRecordIdError: If the id is malformed
            RecordNotFoundError: If no record has this id
        """
        record_id = parse_record_id(record_id)
        with _storage_errors("get"):
            record = self.store.fetch(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return record

    def create(self, payload: Mapping[str, Any]) -> UsageRecord:
        """Validate and persist a new record.

        Args:
            payload: Field values for the new record

        Returns:
            The stored record with its id and created_at

        Raises:
            ValidationError: If the payload is invalid (nothing is written)
            StorageError: If the store fails
        """
        data = validate_payload(payload)
        return self._insert(data)

    def create_batch(self, payloads: Sequence[Mapping[str, Any]]) -> List[UsageRecord]:
        """Create several records, one per payload.

        Every payload is validated before anything is written. Writes are
        independent; if one fails the rest are still attempted.

        Raises:
            ValidationError: If any payload is invalid. Field names are
                prefixed with the payload position, e.g. ``1.tool``.
            PartialBatchError: If some writes failed
        """
        validated: List[UsageRecordInput] = []
        errors: Dict[str, str] = {}
        for index, payload in enumerate(payloads):
            try:
                validated.append(validate_payload(payload))
            except ValidationError as e:
                for name, message in e.field_errors.items():
                    errors[f"{index}.{name}"] = message
        if errors:
            raise ValidationError(errors)

        created: List[UsageRecord] = []
        failures: Dict[int, Exception] = {}
        for index, data in enumerate(validated):
            try:
                created.append(self._insert(data))
            except StorageError as e:
                failures[index] = e

        if failures:
            raise PartialBatchError("create", [r.id for r in created], failures)
        return created

    def update(self, record_id: Any, payload: Mapping[str, Any]) -> UsageRecord:
        """Replace every mutable field of an existing record.

        ``id`` and ``created_at`` are left unchanged.

        Raises:
            InvalidRecordIdError: If the id is malformed
            ValidationError: If the payload is invalid
            RecordNotFoundError: If no record has this id
            StorageError: If the store fails
        """
        record_id = parse_record_id(record_id)
        data = validate_payload(payload)
        with _storage_errors("update"):
            record = self.store.replace(record_id, data)
        if record is None:
            raise RecordNotFoundError(record_id)
        logger.info("Updated record %d", record_id)
        return record

    def delete(self, record_id: Any) -> None:
        """Hard-delete a record.

        Raises:
            InvalidRecordIdError: If the id is malformed
            RecordNotFoundError: If no record has this id
            StorageError: If the store fails
        """
        record_id = parse_record_id(record_id)
        with _storage_errors("delete"):
            deleted = self.store.delete(record_id)
        if not deleted:
            raise RecordNotFoundError(record_id)
        logger.info("Deleted record %d", record_id)

    def delete_all(self) -> int:
        """Delete every record with one independent delete per record.

        Returns:
            Number of records deleted

        Raises:
            PartialBatchError: If any delete failed; carries the ids that
                were deleted and the failure for each id that was not
        """
        records = self.list()
        deleted: List[int] = []
        failures: Dict[int, Exception] = {}
        for record in records:
            try:
                self.delete(record.id)
                deleted.append(record.id)
            except (RecordNotFoundError, StorageError) as e:
                logger.warning("Could not delete record %d: %s", record.id, e)
                failures[record.id] = e

        if failures:
            raise PartialBatchError("delete all", deleted, failures)
        return len(deleted)

    def _insert(self, data: UsageRecordInput) -> UsageRecord:
        with _storage_errors("create"):
            record = self.store.insert(data, self.clock())
        logger.info("Created record %d for %r", record.id, record.assignment_title)
        return record

"""
Error taxonomy for the record service.

Every error raised across the service boundary derives from GuidebookError
so callers can catch the whole family in one place.
"""

from typing import Dict, List, Mapping, Optional


class GuidebookError(Exception):
    """Base class for all AI Guidebook errors."""


class ValidationError(GuidebookError):
    """Raised when a payload fails validation.
    
    Carries every failing field, not just the first one.
    """
    def __init__(self, field_errors: Mapping[str, str], message: Optional[str] = None):
        self.field_errors: Dict[str, str] = dict(field_errors)
        if message is None:
            details = "; ".join(f"{name}: {error}" for name, error in self.field_errors.items())
            message = f"Invalid payload ({details})"
        super().__init__(message)

    @property
    def fields(self) -> List[str]:
        return list(self.field_errors)


class InvalidRecordIdError(ValidationError):
    """Raised when a caller-supplied id is not a positive integer."""
    def __init__(self, value: object):
        self.value = value
        super().__init__(
            {"id": "must be a positive integer"},
            message=f"Invalid record id: {value!r}",
        )


class RecordNotFoundError(GuidebookError):
    """Raised when an operation references an id that does not exist."""
    def __init__(self, record_id: int):
        self.record_id = record_id
        super().__init__(f"Record {record_id} not found")


class StorageError(GuidebookError):
    """Raised when the storage layer itself fails."""


class PartialBatchError(GuidebookError):
    """Raised when some operations of a bulk request failed.
    
    Attributes:
        succeeded: Ids of records the batch did write or delete
        failures: Per-item failures, keyed by record id (deletes) or
            payload position (creates)
    """
    def __init__(self, operation: str, succeeded: List[int], failures: Mapping[int, Exception]):
        self.operation = operation
        self.succeeded = list(succeeded)
        self.failures: Dict[int, Exception] = dict(failures)
        super().__init__(
            f"{operation} partially failed: {len(self.succeeded)} succeeded, "
            f"{len(self.failures)} failed"
        )


class EmptyDeclarationError(GuidebookError):
    """Raised when a declaration is requested for an empty record set."""
    def __init__(self):
        super().__init__("No entries to declare.")

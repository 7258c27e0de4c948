"""
Payload validation for usage records.

Applied identically on create and on update; there is no partial update.
"""

from typing import Any, Dict, Mapping, Optional

from .errors import InvalidRecordIdError, ValidationError
from ai_guidebook.storage.models import (
    OPTIONAL_TEXT_FIELDS,
    REQUIRED_FIELDS,
    UsageRecordInput,
)


def validate_payload(payload: Mapping[str, Any]) -> UsageRecordInput:
    """Validate a candidate payload and normalize it.
    
    Required fields must be non-empty strings. Optional text fields must be
    strings when given; missing or None becomes an explicit None. Unknown
    keys (including ``id`` and ``created_at``) are ignored.
    
    Args:
        payload: Mapping of field name to value
        
    Returns:
        Normalized UsageRecordInput
        
    Raises:
        ValidationError: Listing every field that failed
    """
    if not isinstance(payload, Mapping):
        raise ValidationError({"payload": "must be a mapping of field names to values"})

    errors: Dict[str, str] = {}
    values: Dict[str, Optional[str]] = {}

    for name in REQUIRED_FIELDS:
        value = payload.get(name)
        if value is None:
            errors[name] = "is required"
        elif not isinstance(value, str):
            errors[name] = "must be a string"
        elif not value.strip():
            errors[name] = "must not be empty"
        else:
            values[name] = value

    for name in OPTIONAL_TEXT_FIELDS:
        value = payload.get(name)
        if value is None:
            values[name] = None
        elif not isinstance(value, str):
            errors[name] = "must be a string"
        else:
            values[name] = value

    if errors:
        raise ValidationError(errors)

    return UsageRecordInput(**values)


def parse_record_id(value: Any) -> int:
    """Parse a caller-supplied record id.
    
    Accepts positive ints and strings of decimal digits.
    
    Raises:
        InvalidRecordIdError: If the value is not a positive integer
    """
    if isinstance(value, bool):
        raise InvalidRecordIdError(value)
    if isinstance(value, int):
        record_id = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        record_id = int(value.strip())
    else:
        raise InvalidRecordIdError(value)
    if record_id <= 0:
        raise InvalidRecordIdError(value)
    return record_id

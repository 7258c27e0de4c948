"""
Data models for storage layer.

Defines the usage record entity and the validated input used to write it.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

AI_TOOLS: Tuple[str, ...] = (
    "ChatGPT",
    "Claude",
    "Gemini",
    "Copilot",
    "Midjourney",
    "DALL-E",
    "Grammarly AI",
    "Other",
)

PURPOSE_CATEGORIES: Tuple[str, ...] = (
    "Brainstorming",
    "Drafting",
    "Editing & Proofreading",
    "Summarisation",
    "Translation",
    "Coding Assistance",
    "Debugging",
    "Research Support",
    "Study/Tutoring",
    "Data Analysis",
    "Other",
)

REQUIRED_FIELDS: Tuple[str, ...] = (
    "assignment_title",
    "date_of_use",
    "tool",
    "purpose_category",
)

OPTIONAL_TEXT_FIELDS: Tuple[str, ...] = (
    "optional_explanation",
    "prompt_query_used",
    "output_received",
    "modified_output",
)

# Python attribute -> persisted column
COLUMN_NAMES: Dict[str, str] = {
    "id": "id",
    "assignment_title": "assignmentTitle",
    "date_of_use": "dateOfUse",
    "tool": "tool",
    "purpose_category": "purposeCategory",
    "optional_explanation": "optionalExplanation",
    "prompt_query_used": "promptQueryUsed",
    "output_received": "outputReceived",
    "modified_output": "modifiedOutput",
    "created_at": "createdAt",
}


def has_text(value: Optional[str]) -> bool:
    """Return True when an optional text field holds something worth showing."""
    return value is not None and value.strip() != ""


@dataclass(frozen=True)
class UsageRecordInput:
    """Validated, normalized payload for creating or replacing a record.
    
    Optional text fields use ``None`` as the only "absent" marker. An empty
    string supplied by the caller is kept as-is.
    """
    assignment_title: str
    date_of_use: str
    tool: str
    purpose_category: str
    optional_explanation: Optional[str] = None
    prompt_query_used: Optional[str] = None
    output_received: Optional[str] = None
    modified_output: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UsageRecord:
    """One logged instance of using an AI tool for an assignment.
    
    ``id`` and ``created_at`` are assigned by the store and never change.
    """
    id: int
    assignment_title: str
    date_of_use: str
    tool: str
    purpose_category: str
    created_at: datetime
    optional_explanation: Optional[str] = None
    prompt_query_used: Optional[str] = None
    output_received: Optional[str] = None
    modified_output: Optional[str] = None

    @classmethod
    def from_input(cls, record_id: int, created_at: datetime, data: UsageRecordInput) -> "UsageRecord":
        return cls(id=record_id, created_at=created_at, **data.to_dict())

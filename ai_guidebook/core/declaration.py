"""
Usage declaration generation.

Renders all usage records as a plain-text attestation, grouped by
assignment title.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ai_guidebook.storage.models import UsageRecord, has_text

HEAVY_RULE = "═" * 50
LIGHT_RULE = "─" * 40
ATTESTATION = (
    "I declare that the above is a complete and accurate record of my AI tool "
    "usage for the listed assignments."
)
SIGNATURE_LINE = "Student Signature: ________________________"

# Optional fields in the order they are printed
OPTIONAL_LINES = (
    ("optional_explanation", "Purpose Details"),
    ("prompt_query_used", "Prompt"),
    ("output_received", "Output"),
    ("modified_output", "Modifications"),
)


@dataclass(frozen=True)
class Declaration:
    text: str
    filename: str


def group_by_assignment(records: Sequence[UsageRecord]) -> Dict[str, List[UsageRecord]]:
    """Group records by their raw assignment title.

    Groups keep first-seen order and records keep input order.
    """
    groups: Dict[str, List[UsageRecord]] = {}
    for record in records:
        groups.setdefault(record.assignment_title, []).append(record)
    return groups


def declaration_filename(now: datetime) -> str:
    return f"ai-declaration-{now.date().isoformat()}.txt"


def _render_record(number: int, record: UsageRecord) -> List[str]:
    lines = [
        "",
        f"{number}. Date: {record.date_of_use}",
        f"   AI Tool: {record.tool}",
        f"   Purpose Category: {record.purpose_category}",
    ]
    for attribute, label in OPTIONAL_LINES:
        value = getattr(record, attribute)
        if has_text(value):
            lines.append(f"   {label}: {value}")
    return lines


def generate_declaration(
    records: Sequence[UsageRecord],
    now: Optional[datetime] = None,
    student_name: Optional[str] = None
) -> Declaration:
    """Render the declaration document for a set of records.

    Output depends only on the records, ``now`` and ``student_name``.

    Args:
        records: Records to declare, in display order
        now: Generation time (defaults to the current time)
        student_name: Printed above the signature line when given

    Returns:
        Declaration with the document text and a suggested filename

    Raises:
        ValueError: If records is empty
    """
    if not records:
        raise ValueError("Records list cannot be empty")

    now = now or datetime.now()
    generated_on = now.date().isoformat()

    lines = [
        "AI USAGE DECLARATION",
        f"Generated: {generated_on}",
        HEAVY_RULE,
        "",
    ]

    for assignment, items in group_by_assignment(records).items():
        lines.append(f"ASSIGNMENT: {assignment}")
        lines.append(LIGHT_RULE)
        for number, record in enumerate(items, start=1):
            lines.extend(_render_record(number, record))
        lines.append("")

    lines.append(HEAVY_RULE)
    lines.append(ATTESTATION)
    lines.append("")
    if student_name:
        lines.append(f"Student Name: {student_name}")
    lines.append(SIGNATURE_LINE)
    lines.append(f"Date: {generated_on}")

    return Declaration(
        text="\n".join(lines) + "\n",
        filename=declaration_filename(now),
    )

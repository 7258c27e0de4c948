"""
Composite assignment titles.

A stored title may encode "course | task type | assignment name". Titles
with one or two segments are valid too and are read positionally.
"""

from dataclasses import dataclass

TITLE_SEPARATOR = " | "


@dataclass(frozen=True)
class AssignmentTitle:
    """Parsed parts of a stored assignment title."""
    course: str
    task_type: str
    assignment_name: str


def parse_assignment_title(value: str) -> AssignmentTitle:
    """Split a stored title into course, task type and assignment name.
    
    Three segments map to all three parts, two segments to course and
    assignment name. Anything else is returned whole as the assignment name.
    
    Args:
        value: Raw assignment title as stored
        
    Returns:
        AssignmentTitle with empty strings for missing parts
    """
    parts = [part.strip() for part in value.split(TITLE_SEPARATOR)]
    parts = [part for part in parts if part]
    if len(parts) == 3:
        return AssignmentTitle(course=parts[0], task_type=parts[1], assignment_name=parts[2])
    if len(parts) == 2:
        return AssignmentTitle(course=parts[0], task_type="", assignment_name=parts[1])
    return AssignmentTitle(course="", task_type="", assignment_name=value)


def build_assignment_title(course: str, task_type: str, assignment_name: str) -> str:
    """Join the non-empty parts into a stored title."""
    parts = [course.strip(), task_type.strip(), assignment_name.strip()]
    return TITLE_SEPARATOR.join(part for part in parts if part)

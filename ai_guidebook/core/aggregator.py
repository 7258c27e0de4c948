"""
Filtering and summary statistics for the usage dashboard.

Everything here is a pure function of the record snapshot, the filter
specification and "today". Inputs are never mutated, so repeated calls
with the same arguments give the same result.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .titles import parse_assignment_title
from ai_guidebook.storage.models import UsageRecord

ALL = "all"
DEFAULT_TOP_TOOLS = 5


class TimeRange(Enum):
    """Time periods selectable on the dashboard."""
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    ALL_TIME = "all"
    CUSTOM = "custom"


_RANGE_DAYS = {
    TimeRange.LAST_7_DAYS: 7,
    TimeRange.LAST_30_DAYS: 30,
    TimeRange.LAST_90_DAYS: 90,
}


@dataclass(frozen=True)
class FilterSpec:
    """User-chosen criteria for narrowing the record set.

    Blank ``course``/``task_type`` and the ``"all"`` wildcard for ``tool``
    and ``purpose_category`` disable those filters. ``from_date`` and
    ``to_date`` are only read for ``TimeRange.CUSTOM``, and either may be
    left open.
    """
    course: str = ""
    task_type: str = ""
    tool: str = ALL
    purpose_category: str = ALL
    time_range: TimeRange = TimeRange.LAST_30_DAYS
    from_date: Optional[date] = None
    to_date: Optional[date] = None

    def __post_init__(self):
        """Validate the custom date window."""
        if not isinstance(self.time_range, TimeRange):
            raise ValueError(f"time_range must be a TimeRange, got {self.time_range!r}")
        if (self.from_date is not None and self.to_date is not None
                and self.from_date > self.to_date):
            raise ValueError("from_date must not be after to_date")


@dataclass(frozen=True)
class MonthlyBucket:
    """Number of filtered records used in one calendar month."""
    year: int
    month: int
    count: int

    @property
    def label(self) -> str:
        return date(self.year, self.month, 1).strftime("%b %Y")


@dataclass(frozen=True)
class ToolCount:
    tool: str
    count: int


@dataclass(frozen=True)
class UsageSummary:
    """Dashboard statistics over a filtered record set."""
    total: int
    unique_tools: int
    unique_assignments: int
    top_purpose_category: Optional[str]  # None when there are no records
    monthly_usage: List[MonthlyBucket] = field(default_factory=list)
    top_tools: List[ToolCount] = field(default_factory=list)


@dataclass(frozen=True)
class AggregationResult:
    entries: List[UsageRecord]
    summary: UsageSummary


def parse_date_of_use(value: str) -> Optional[date]:
    """Read a stored date of use, returning None if it is not an ISO date."""
    try:
        return datetime.fromisoformat(value.strip()).date()
    except (AttributeError, ValueError):
        return None


def resolve_date_bounds(
    spec: FilterSpec,
    today: Optional[date] = None
) -> Tuple[Optional[date], Optional[date]]:
    """Turn the filter's time range into inclusive (from, to) dates.

    Args:
        spec: Filter specification
        today: Reference date for relative ranges (defaults to today)

    Returns:
        Tuple of bounds, either of which may be None (open-ended)
    """
    if spec.time_range in _RANGE_DAYS:
        today = today or date.today()
        return today - timedelta(days=_RANGE_DAYS[spec.time_range]), today
    if spec.time_range == TimeRange.CUSTOM:
        return spec.from_date, spec.to_date
    return None, None


def _matches_title_part(record: UsageRecord, needle: str, part: str) -> bool:
    needle = needle.strip().lower()
    if not needle:
        return True
    parsed = getattr(parse_assignment_title(record.assignment_title), part)
    return needle in parsed.lower() or needle in record.assignment_title.lower()


def _within(day: Optional[date], bounds: Tuple[Optional[date], Optional[date]]) -> bool:
    from_date, to_date = bounds
    if from_date is None and to_date is None:
        return True
    # Unparseable dates cannot satisfy an active date filter
    if day is None:
        return False
    if from_date is not None and day < from_date:
        return False
    if to_date is not None and day > to_date:
        return False
    return True


def filter_records(
    records: Sequence[UsageRecord],
    spec: FilterSpec,
    today: Optional[date] = None
) -> List[UsageRecord]:
    """Apply every active filter.

    A record has to pass all filters. Input order is preserved.

    Args:
        records: Record snapshot, usually newest first
        spec: Filter specification
        today: Reference date for relative time ranges

    Returns:
        New list with the matching records
    """
    bounds = resolve_date_bounds(spec, today)
    result = []
    for record in records:
        if not _matches_title_part(record, spec.course, "course"):
            continue
        if not _matches_title_part(record, spec.task_type, "task_type"):
            continue
        if spec.tool != ALL and record.tool != spec.tool:
            continue
        if spec.purpose_category != ALL and record.purpose_category != spec.purpose_category:
            continue
        if not _within(parse_date_of_use(record.date_of_use), bounds):
            continue
        result.append(record)
    return result


def _ranked(counts: Counter) -> List[Tuple[str, int]]:
    # Ties keep first-seen order
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def monthly_usage(records: Sequence[UsageRecord]) -> List[MonthlyBucket]:
    """Count records per calendar month of use, oldest month first.

    Records whose date of use cannot be parsed are left out.
    """
    counts: Dict[Tuple[int, int], int] = {}
    for record in records:
        day = parse_date_of_use(record.date_of_use)
        if day is None:
            continue
        key = (day.year, day.month)
        counts[key] = counts.get(key, 0) + 1
    return [
        MonthlyBucket(year=year, month=month, count=count)
        for (year, month), count in sorted(counts.items())
    ]


def summarize(records: Sequence[UsageRecord], top_n: int = DEFAULT_TOP_TOOLS) -> UsageSummary:
    """Compute dashboard statistics for an already filtered record set.

    Args:
        records: Filtered records
        top_n: How many tools to include in the ranking

    Returns:
        UsageSummary for the records
    """
    if top_n < 0:
        raise ValueError("top_n cannot be negative")

    category_counts = Counter(record.purpose_category for record in records)
    tool_counts = Counter(record.tool for record in records)

    ranked_categories = _ranked(category_counts)
    top_category = ranked_categories[0][0] if ranked_categories else None

    return UsageSummary(
        total=len(records),
        unique_tools=len(tool_counts),
        unique_assignments=len({record.assignment_title for record in records}),
        top_purpose_category=top_category,
        monthly_usage=monthly_usage(records),
        top_tools=[
            ToolCount(tool=tool, count=count)
            for tool, count in _ranked(tool_counts)[:top_n]
        ],
    )


def aggregate(
    records: Sequence[UsageRecord],
    spec: FilterSpec,
    today: Optional[date] = None,
    top_n: int = DEFAULT_TOP_TOOLS
) -> AggregationResult:
    """Filter the records and summarize the result."""
    entries = filter_records(records, spec, today)
    return AggregationResult(entries=entries, summary=summarize(entries, top_n))

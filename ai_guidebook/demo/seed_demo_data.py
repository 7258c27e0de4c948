# ai_guidebook/demo/seed_demo_data.py

from datetime import date, timedelta
from typing import List, Optional

from ai_guidebook.core.service import RecordService
from ai_guidebook.core.titles import build_assignment_title
from ai_guidebook.storage.models import UsageRecord
from ai_guidebook.storage.repository import get_repository


def demo_payloads(today: Optional[date] = None) -> List[dict]:
    """Sample usage records spread over the last few months."""
    today = today or date.today()
    essay = build_assignment_title("CS101", "Essay", "Climate Change")
    report = build_assignment_title("TDT4242", "Report", "Requirements Analysis")
    return [
        {
            "assignment_title": essay,
            "date_of_use": (today - timedelta(days=2)).isoformat(),
            "tool": "ChatGPT",
            "purpose_category": "Brainstorming",
            "optional_explanation": "Generated an initial list of arguments",
            "prompt_query_used": "List arguments for carbon taxes",
            "output_received": "Ten bullet points",
            "modified_output": "Kept three, rewrote them in my own words",
        },
        {
            "assignment_title": essay,
            "date_of_use": (today - timedelta(days=1)).isoformat(),
            "tool": "Grammarly AI",
            "purpose_category": "Editing & Proofreading",
        },
        {
            "assignment_title": report,
            "date_of_use": (today - timedelta(days=40)).isoformat(),
            "tool": "Claude",
            "purpose_category": "Summarisation",
            "optional_explanation": "Summarised two background papers",
        },
        {
            "assignment_title": report,
            "date_of_use": (today - timedelta(days=75)).isoformat(),
            "tool": "Copilot",
            "purpose_category": "Coding Assistance",
            "prompt_query_used": "Write a pytest fixture for a temp database",
        },
        {
            "assignment_title": "Reading Reflection",
            "date_of_use": (today - timedelta(days=120)).isoformat(),
            "tool": "ChatGPT",
            "purpose_category": "Study/Tutoring",
        },
    ]


def seed_demo_records(service: RecordService, today: Optional[date] = None) -> List[UsageRecord]:
    """Insert the demo records through the service."""
    return service.create_batch(demo_payloads(today))


if __name__ == "__main__":
    records = seed_demo_records(RecordService(get_repository()))
    print(f"Inserted {len(records)} demo usage records")

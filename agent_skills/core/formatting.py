"""
Output formatting helpers.

Date, priority and CSV rendering shared by the Linear and Jina skills.
"""

import csv
import io
import json
from datetime import datetime
from typing import Any, Dict, List, Optional

PRIORITY_NAMES = {
    0: "None",
    1: "Urgent",
    2: "High",
    3: "Medium",
    4: "Low",
}

# Flag value -> Linear priority number
PRIORITY_VALUES = {
    "none": 0,
    "urgent": 1,
    "high": 2,
    "medium": 3,
    "low": 4,
}


def format_date(value: Optional[str]) -> str:
    """Format an ISO-8601 timestamp as local "YYYY-MM-DD HH:MM"."""
    if not value:
        return "N/A"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.strftime("%Y-%m-%d %H:%M")


def format_priority(priority: Optional[int]) -> str:
    return PRIORITY_NAMES.get(priority, "Unknown")


def parse_priority(name: str) -> Optional[int]:
    """Map a priority flag value to Linear's number, None if unknown."""
    return PRIORITY_VALUES.get(name.lower())


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def to_csv(rows: List[Dict[str, Any]]) -> str:
    """Render rows as CSV with a bare header and every value quoted.

    Returns an empty string when there are no rows.
    """
    if not rows:
        return ""

    headers = list(rows[0].keys())
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(headers)
    writer = csv.DictWriter(
        buffer, fieldnames=headers, quoting=csv.QUOTE_ALL, lineterminator="\n", extrasaction="ignore"
    )
    writer.writerows(rows)
    return buffer.getvalue()[:-1]


def indent(text: str, prefix: str = "  ") -> str:
    return "\n".join(prefix + line for line in text.split("\n"))

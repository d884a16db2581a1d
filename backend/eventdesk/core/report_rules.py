"""Report Rules — column layouts and CSV rendering for workspace reports.

Invariants:
    - Column order is fixed per report type; CSV header == column list
    - None renders as an empty cell; datetimes render as ISO-8601
    - Comprehensive CSV = one "# <TYPE> REPORT" section per report type
"""

import csv
import io
from datetime import datetime
from enum import Enum


REPORT_COLUMNS: dict[str, list[str]] = {
    "tasks": [
        "id", "title", "status", "priority", "category", "progress",
        "due_date", "created_at", "completed_at", "assigned_to", "workspace_id",
    ],
    "team": [
        "id", "user_id", "name", "email", "role", "status",
        "joined_at", "workspace_id",
    ],
    "activity": [
        "id", "activity_type", "description", "created_at",
        "user_id", "task_id", "workspace_id",
    ],
}
REPORT_TYPES = (*REPORT_COLUMNS, "comprehensive")


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def to_csv(rows: list[dict], columns: list[str]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(columns)
    for row in rows:
        writer.writerow([_cell(row.get(col)) for col in columns])
    return buffer.getvalue().rstrip("\n")


def comprehensive_csv(sections: dict[str, list[dict]]) -> str:
    parts = []
    for report_type, rows in sections.items():
        parts.append(f"# {report_type.upper()} REPORT")
        parts.append(to_csv(rows, REPORT_COLUMNS[report_type]))
        parts.append("")
    return "\n".join(parts).rstrip("\n")


def report_filename(report_type: str, now: datetime) -> str:
    return f"workspace-{report_type}-report-{now.date().isoformat()}.csv"

"""Report Rules — verifies CSV layout, cell rendering, and file naming."""

from datetime import datetime, timezone

from eventdesk.core.domain_types import TaskStatus
from eventdesk.core.report_rules import (
    REPORT_COLUMNS, REPORT_TYPES, comprehensive_csv, report_filename, to_csv,
)

NOW = datetime(2026, 7, 4, 9, 30, tzinfo=timezone.utc)


def test_report_types():
    assert REPORT_TYPES == ("tasks", "team", "activity", "comprehensive")


def test_header_only_when_empty():
    assert to_csv([], ["id", "name"]) == "id,name"


def test_cells_render():
    rows = [{"id": 1, "status": TaskStatus.COMPLETED, "due_date": NOW, "note": None}]
    text = to_csv(rows, ["id", "status", "due_date", "note"])
    assert text.splitlines()[1] == "1,COMPLETED,2026-07-04T09:30:00+00:00,"


def test_values_with_commas_are_quoted():
    assert to_csv([{"title": "Book venue, catering"}], ["title"]).splitlines()[1] == (
        '"Book venue, catering"'
    )


def test_comprehensive_sections():
    text = comprehensive_csv({"tasks": [], "team": []})
    lines = text.splitlines()
    assert lines[0] == "# TASKS REPORT"
    assert lines[1] == ",".join(REPORT_COLUMNS["tasks"])
    assert "# TEAM REPORT" in lines
    assert not text.endswith("\n")


def test_report_filename():
    assert report_filename("tasks", NOW) == "workspace-tasks-report-2026-07-04.csv"

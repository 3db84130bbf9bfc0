"""
Response formatting for tasksync MCP tools.

Every formatter comes in a markdown flavor for humans and a JSON-ready
dict flavor for machines.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from tasksync.sync import SyncReport, SyncStatus, TaskSyncResult


def _format_time(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip() if value else "never"


# =============================================================================
# Status
# =============================================================================


def format_status_markdown(status: SyncStatus) -> str:
    lines = [
        "# Sync Status",
        "",
        f"- **State**: {status.state.value}",
        f"- **Syncing**: {'yes' if status.is_syncing else 'no'}",
        f"- **Offline**: {'yes' if status.is_offline else 'no'}",
        f"- **Last Sync**: {_format_time(status.last_sync_time)}",
    ]
    if status.last_sync_error:
        lines.append(f"- **Last Error**: {status.last_sync_error}")
    return "\n".join(lines)


def format_status_json(status: SyncStatus) -> dict[str, Any]:
    return status.model_dump(mode="json")


# =============================================================================
# Reports
# =============================================================================


def format_calendar_result_markdown(result: TaskSyncResult) -> str:
    return f"- `{result.calendar_id}`: {result.summary()}"


def format_calendar_result_json(result: TaskSyncResult) -> dict[str, Any]:
    return {
        "calendar_id": result.calendar_id,
        "pushed": result.pushed,
        "push_failures": result.push_failures,
        "added": result.added,
        "updated": result.updated,
        "tags_updated": result.tags_updated,
        "skipped": result.skipped,
        "deleted": result.deleted,
        "apply_failures": result.apply_failures,
        "deletions_sent": result.deletions_sent,
        "deletions_failed": result.deletions_failed,
    }


def format_report_markdown(report: SyncReport) -> str:
    """Format a full-cycle report."""
    lines = ["# Sync Complete" if report.succeeded else "# Sync Failed", "", report.summary()]

    if report.tasks:
        lines.extend(["", "## Calendars", ""])
        lines.extend(format_calendar_result_markdown(r) for r in report.tasks)

    if report.failures:
        lines.extend(["", "## Failed Units", ""])
        for failure in report.failures:
            lines.append(f"- {failure.unit} `{failure.target_id}`: {failure.error}")

    return "\n".join(lines)


def format_report_json(report: SyncReport) -> dict[str, Any]:
    return {
        "success": report.succeeded,
        "error": report.error,
        "started_at": report.started_at.isoformat(),
        "finished_at": report.finished_at.isoformat() if report.finished_at else None,
        "accounts": [
            {
                "account_id": r.account_id,
                "calendars_added": r.added,
                "calendars_updated": r.updated,
                "calendars_removed": r.removed,
                "tasks_removed": r.tasks_removed,
            }
            for r in report.calendars
        ],
        "calendars": [format_calendar_result_json(r) for r in report.tasks],
        "failures": [
            {"unit": f.unit, "target_id": f.target_id, "error": f.error}
            for f in report.failures
        ],
    }


# =============================================================================
# Messages
# =============================================================================


def success_message(message: str) -> str:
    return f"✓ {message}"


def error_message(message: str, suggestion: str | None = None) -> str:
    """Format an error for display, with an optional hint."""
    if suggestion:
        return f"Error: {message}\n\nSuggestion: {suggestion}"
    return f"Error: {message}"

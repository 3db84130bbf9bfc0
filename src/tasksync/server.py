#!/usr/bin/env python3
"""
tasksync MCP Server.

Exposes the task sync engine as MCP tools so an assistant can drive
synchronization between the local task store and a CalDAV-style server.

Features:
    - Full sync cycles and single-calendar passes
    - Sync status (state, offline flag, last error, last sync time)
    - Immediate push and deletion of individual tasks
    - Auto-sync timer configuration and active calendar selection

Environment Variables:
    TASKSYNC_REMOTE_CLIENT    "module:factory" path building the remote client
    TASKSYNC_DATABASE_PATH    SQLite file for the local store
    TASKSYNC_AUTO_SYNC        Enable the periodic sync timer
    TASKSYNC_SYNC_INTERVAL_MINUTES
    TASKSYNC_LOG_LEVEL
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from mcp.server.fastmcp import FastMCP, Context

from tasksync.service import SyncService
from tasksync.settings import get_settings
from tasksync.tools.inputs import (
    ResponseFormat,
    SyncAllInput,
    CalendarSyncInput,
    ActiveCalendarInput,
    TaskPushInput,
    TaskDeleteInput,
    AutoSyncInput,
)
from tasksync.tools.formatting import (
    format_status_markdown,
    format_status_json,
    format_report_markdown,
    format_report_json,
    format_calendar_result_markdown,
    format_calendar_result_json,
    success_message,
    error_message,
)

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(mcp: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """
    Manage the sync service lifecycle.

    Starts auto-sync and connectivity probing on startup and stops them on
    shutdown.
    """
    logger.info("Initializing tasksync MCP Server...")

    try:
        service = SyncService.from_settings()
        await service.start()
        yield {"service": service}
    except Exception as e:
        logger.error("Failed to initialize sync service: %s", e)
        raise
    finally:
        if "service" in locals():
            await service.stop()


mcp = FastMCP(
    "tasksync_mcp",
    lifespan=lifespan,
)


def get_service(ctx: Context) -> SyncService:
    """Get the sync service from context."""
    return ctx.request_context.lifespan_state["service"]


# =============================================================================
# Error Handling
# =============================================================================


def handle_error(e: Exception, operation: str) -> str:
    """Handle exceptions and return user-friendly error messages."""
    logger.exception("Error in %s: %s", operation, e)

    error_type = type(e).__name__

    if "Connection" in error_type:
        return error_message(
            f"Could not reach the calendar server: {e}",
            "Check your network connection and account credentials.",
        )
    elif "Remote" in error_type:
        operation_name = getattr(e, "operation", None) or operation
        return error_message(
            f"Calendar server request failed during {operation_name}: {e}",
            "Try again later; the next sync will retry.",
        )
    elif "NotFound" in error_type:
        return error_message(
            f"Resource not found: {e}",
            "Verify the ID is correct and the resource exists.",
        )
    elif "Validation" in error_type or isinstance(e, ValueError):
        return error_message(f"Invalid input: {e}")
    elif "Configuration" in error_type:
        return error_message(
            f"Configuration error: {e}",
            "Check your TASKSYNC_* environment variables.",
        )
    else:
        return error_message(f"Unexpected error: {e}")


# =============================================================================
# Sync Tools
# =============================================================================


@mcp.tool(
    name="tasksync_sync_all",
    annotations={
        "title": "Sync All Accounts",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def tasksync_sync_all(params: SyncAllInput, ctx: Context) -> str:
    """
    Run a full sync cycle across every account.

    Reconnects accounts, reconciles calendar lists, then reconciles the tasks
    of every calendar. A cycle requested while another one is running is
    dropped.

    Args:
        params: Response format

    Returns:
        Cycle report, or a notice when the cycle did not run
    """
    try:
        service = get_service(ctx)
        report = await service.sync_all()

        if report is None:
            if service.is_offline:
                return error_message(service.last_sync_error or "Offline")
            return success_message("A sync is already in progress")

        if params.response_format == ResponseFormat.JSON:
            return json.dumps(format_report_json(report), indent=2)
        return format_report_markdown(report)
    except Exception as e:
        return handle_error(e, "sync_all")


@mcp.tool(
    name="tasksync_sync_calendar",
    annotations={
        "title": "Sync Calendar",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def tasksync_sync_calendar(params: CalendarSyncInput, ctx: Context) -> str:
    """
    Reconcile the tasks of one calendar.

    Sends queued deletions, pushes unsynced local tasks, then applies the
    server's state to the local store.

    Args:
        params: Calendar ID and response format

    Returns:
        Calendar pass result
    """
    try:
        service = get_service(ctx)
        result = await service.sync_calendar(params.calendar_id)

        if result is None:
            return success_message("A full sync is in progress; calendar will be covered by it")

        if params.response_format == ResponseFormat.JSON:
            return json.dumps(format_calendar_result_json(result), indent=2)
        return format_calendar_result_markdown(result)
    except Exception as e:
        return handle_error(e, "sync_calendar")


@mcp.tool(
    name="tasksync_sync_status",
    annotations={
        "title": "Get Sync Status",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def tasksync_sync_status(params: SyncAllInput, ctx: Context) -> str:
    """
    Report the engine's state, offline flag, last error and last sync time.

    Args:
        params: Response format

    Returns:
        Current sync status
    """
    try:
        status = get_service(ctx).status

        if params.response_format == ResponseFormat.JSON:
            return json.dumps(format_status_json(status), indent=2)
        return format_status_markdown(status)
    except Exception as e:
        return handle_error(e, "sync_status")


# =============================================================================
# Task Tools
# =============================================================================


@mcp.tool(
    name="tasksync_push_task",
    annotations={
        "title": "Push Task",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def tasksync_push_task(params: TaskPushInput, ctx: Context) -> str:
    """
    Send one local task to the server immediately.

    Creates the remote resource if the task has never been pushed, otherwise
    updates it.

    Args:
        params: Task ID

    Returns:
        Success or error message
    """
    try:
        service = get_service(ctx)
        task = service.store.get_task(params.task_id)
        if task is None:
            return error_message(f"Task not found: {params.task_id}")

        if await service.push_task(task):
            return success_message(f"Task '{task.title}' pushed to server")
        return error_message(
            f"Server rejected task '{task.title}'",
            "The task stays unsynced and will be retried on the next sync.",
        )
    except Exception as e:
        return handle_error(e, "push_task")


@mcp.tool(
    name="tasksync_delete_task",
    annotations={
        "title": "Delete Task",
        "readOnlyHint": False,
        "destructiveHint": True,
        "idempotentHint": False,
        "openWorldHint": True,
    },
)
async def tasksync_delete_task(params: TaskDeleteInput, ctx: Context) -> str:
    """
    Delete a task locally and on the server.

    When the server cannot be reached the deletion is queued and sent on the
    calendar's next sync.

    Args:
        params: Task ID

    Returns:
        Success message noting whether the deletion was queued
    """
    try:
        removed = await get_service(ctx).delete_task(params.task_id)
        if removed:
            return success_message(f"Task {params.task_id} deleted")
        return success_message(
            f"Task {params.task_id} deleted locally; server deletion queued for next sync"
        )
    except Exception as e:
        return handle_error(e, "delete_task")


# =============================================================================
# Auto-Sync Tools
# =============================================================================


@mcp.tool(
    name="tasksync_configure_auto_sync",
    annotations={
        "title": "Configure Auto-Sync",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
async def tasksync_configure_auto_sync(params: AutoSyncInput, ctx: Context) -> str:
    """
    Enable, disable or re-time the periodic sync.

    Args:
        params: Enabled flag and/or interval in minutes

    Returns:
        The resulting auto-sync settings
    """
    try:
        service = get_service(ctx)
        service.configure_auto_sync(
            enabled=params.enabled,
            interval_minutes=params.interval_minutes,
        )
        scheduler = service.scheduler
        state = "enabled" if scheduler.enabled else "disabled"
        return success_message(
            f"Auto-sync {state}, every {scheduler.interval_minutes} minutes"
        )
    except Exception as e:
        return handle_error(e, "configure_auto_sync")


@mcp.tool(
    name="tasksync_set_active_calendar",
    annotations={
        "title": "Set Active Calendar",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def tasksync_set_active_calendar(params: ActiveCalendarInput, ctx: Context) -> str:
    """
    Change the active calendar, reconciling it when the selection changed.

    Args:
        params: Calendar ID (or none to clear) and response format

    Returns:
        The calendar pass result, or a confirmation if nothing was synced
    """
    try:
        result = await get_service(ctx).set_active_calendar(params.calendar_id)

        if result is None:
            return success_message(f"Active calendar set to {params.calendar_id or 'none'}")

        if params.response_format == ResponseFormat.JSON:
            return json.dumps(format_calendar_result_json(result), indent=2)
        return format_calendar_result_markdown(result)
    except Exception as e:
        return handle_error(e, "set_active_calendar")


# =============================================================================
# Main Entry Point
# =============================================================================


def main():
    """Main entry point for the tasksync MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()

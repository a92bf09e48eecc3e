"""MCP server exposing task history tools."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from mcp.server.fastmcp import Context, FastMCP

from task_history.config import Config, get_config
from task_history.core.tasks import TaskHistoryManager
from task_history.errors import TaskHistoryError


@dataclass
class AppContext:
    manager: TaskHistoryManager
    config: Config


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Build the history manager once per server run."""
    config = get_config()
    yield AppContext(manager=TaskHistoryManager(config), config=config)


mcp = FastMCP("task-history", lifespan=app_lifespan)


def _manager(ctx: Context) -> TaskHistoryManager:
    return ctx.request_context.lifespan_context.manager


@mcp.tool()
def list_task_ids(ctx: Context) -> dict:
    """List task IDs in history file order."""
    try:
        return {"task_ids": _manager(ctx).list_task_ids()}
    except TaskHistoryError as e:
        return {"error": str(e)}


@mcp.tool()
def list_tasks(ctx: Context) -> dict:
    """List tasks oldest first with their token, cache and cost counters."""
    try:
        tasks = _manager(ctx).task_displays()
    except TaskHistoryError as e:
        return {"error": str(e)}
    return {"tasks": [t.to_dict() for t in tasks]}


@mcp.tool()
def delete_tasks(ctx: Context, task_ids: list[str]) -> dict:
    """Delete tasks from history along with their task directories and folder locks.

    Returns a summary of what was removed and which IDs or directories were missing.
    """
    try:
        return _manager(ctx).delete_tasks(task_ids).to_dict()
    except TaskHistoryError as e:
        return {"error": str(e)}


@mcp.tool()
def delete_all_tasks(ctx: Context) -> dict:
    """Delete every task in history, then the shared tasks and checkpoints directories."""
    try:
        return _manager(ctx).delete_all_tasks().to_dict()
    except TaskHistoryError as e:
        return {"error": str(e)}

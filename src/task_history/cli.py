"""CLI entry point for task history."""

import json
import logging
import sys

import click

from task_history.config import get_config
from task_history.core import locks as locks_mod
from task_history.core.tasks import TaskHistoryManager
from task_history.display import get_renderer
from task_history.errors import TaskHistoryError


def _manager() -> TaskHistoryManager:
    return TaskHistoryManager(get_config())


def _fail(e: Exception):
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose):
    """th - Task History CLI"""
    try:
        config = get_config()
        level = "DEBUG" if verbose else config.log_level
        logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    except ValueError as e:
        _fail(e)


# ── Task Commands ─────────────────────────────────────────────────────────────


@main.group("task")
def task_group():
    """Inspect and delete task history."""
    pass


@task_group.command("list")
@click.option("--json-output", "--json", is_flag=True, help="Output as JSON")
def task_list(json_output):
    """List tasks, oldest first."""
    config = get_config()
    renderer = get_renderer("json" if json_output else config.output_format)
    try:
        TaskHistoryManager(config).list_tasks(renderer)
    except TaskHistoryError as e:
        _fail(e)


@task_group.command("ids")
def task_ids():
    """Print task IDs in history order, one per line."""
    try:
        ids = _manager().list_task_ids()
    except TaskHistoryError as e:
        _fail(e)
    for task_id in ids:
        click.echo(task_id)


@task_group.command("delete")
@click.argument("task_ids", nargs=-1)
@click.option("--all", "delete_all", is_flag=True, help="Delete every task in the history")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.option("--json-output", "--json", is_flag=True, help="Output the summary as JSON")
def task_delete(task_ids, delete_all, yes, json_output):
    """Delete tasks, their directories and any folder locks on them."""
    if delete_all and task_ids:
        click.echo("Pass task IDs or --all, not both.", err=True)
        sys.exit(1)
    if not delete_all and not task_ids:
        click.echo("No task IDs given. Pass task IDs or --all.", err=True)
        sys.exit(1)

    manager = _manager()
    if not yes:
        what = "ALL tasks" if delete_all else f"{len(task_ids)} task(s)"
        click.confirm(f"Delete {what}? This cannot be undone", abort=True)

    try:
        summary = manager.delete_all_tasks() if delete_all else manager.delete_tasks(list(task_ids))
    except TaskHistoryError as e:
        _fail(e)

    if json_output:
        click.echo(json.dumps(summary.to_dict(), indent=2))
        return

    click.echo(f"History: {summary.history_file_path}")
    click.echo(f"  Removed from history: {summary.history_items_removed}")
    if summary.history_items_not_found:
        click.echo(f"  Not in history: {', '.join(summary.history_items_not_found)}")
    click.echo(f"  Task dirs deleted: {len(summary.task_dirs_deleted)}")
    for path in summary.task_dirs_missing:
        click.echo(f"  Missing task dir: {path}")
    click.echo(f"  Folder locks removed: {summary.folder_locks_removed}")
    if summary.tasks_dir_removed:
        click.echo("  Tasks dir removed")
    if summary.checkpoints_dir_removed:
        click.echo("  Checkpoints dir removed")


# ── Lock Commands ─────────────────────────────────────────────────────────────


@main.group("lock")
def lock_group():
    """Inspect folder locks."""
    pass


@lock_group.command("list")
def lock_list():
    """List folder locks."""
    config = get_config()
    try:
        with locks_mod.FolderLockManager(config.locks_db_path) as manager:
            folder_locks = manager.list_folder_locks()
    except TaskHistoryError as e:
        _fail(e)

    if not folder_locks:
        click.echo("No folder locks held.")
        return
    for lock in folder_locks:
        click.echo(f"  {lock.lock_target} [held by {lock.held_by} since {lock.locked_at}]")


# ── MCP Server Command ───────────────────────────────────────────────────────


@main.group("mcp")
def mcp_group():
    """MCP server commands."""
    pass


@mcp_group.command("serve")
def mcp_serve():
    """Start the MCP server (stdio transport)."""
    from task_history.mcp.server import mcp

    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()

"""Renderers for task history listings."""

import json
from datetime import datetime

import click

from task_history.config import OUTPUT_FORMATS
from task_history.db.models import TaskDisplay


class PlainRenderer:
    def render_task_list(self, tasks: list[TaskDisplay]) -> None:
        for task in tasks:
            star = "★" if task.is_favorited else " "
            click.echo(f"  {star} {task.id}  {_format_ts(task.ts)}  {_first_line(task.task)}")
            click.echo(
                f"      tokens: {task.tokens_in} in / {task.tokens_out} out"
                f"  cache: {task.cache_writes} writes / {task.cache_reads} reads"
                f"  cost: ${task.total_cost:.4f}  size: {task.size}"
            )


class JsonRenderer:
    def render_task_list(self, tasks: list[TaskDisplay]) -> None:
        click.echo(json.dumps([t.to_dict() for t in tasks], indent=2))


def get_renderer(output_format: str):
    """Return the renderer for an output format name."""
    if output_format == "json":
        return JsonRenderer()
    if output_format == "plain":
        return PlainRenderer()
    raise ValueError(f"Unknown output format {output_format!r}, expected one of {', '.join(OUTPUT_FORMATS)}")


def _format_ts(ts: int) -> str:
    # Task timestamps are milliseconds since the epoch
    try:
        return datetime.fromtimestamp(ts / 1000).strftime("%Y-%m-%d %H:%M")
    except (OverflowError, OSError, ValueError):
        return str(ts)


def _first_line(text: str, limit: int = 80) -> str:
    line = text.strip().splitlines()[0] if text.strip() else "(no description)"
    return line if len(line) <= limit else line[: limit - 1] + "…"

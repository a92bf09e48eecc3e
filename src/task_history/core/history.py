"""Task history index stored as a single JSON file."""

import json
from collections.abc import Collection, Iterable
from pathlib import Path

from task_history.core.atomic import atomic_write_bytes
from task_history.db.models import HistoryItem
from task_history.errors import (
    HistoryParseError,
    HistoryReadError,
    HistorySerializationError,
    HistoryWriteError,
)


def load_history(path: str | Path) -> list[HistoryItem]:
    """Read the history index. A missing file is an empty history."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        return []
    except OSError as e:
        raise HistoryReadError(f"failed to read task history {path}: {e}") from e

    def reject_constant(name: str):
        raise HistoryParseError(f"failed to parse task history {path}: invalid JSON value {name}")

    try:
        raw = json.loads(data, parse_constant=reject_constant)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise HistoryParseError(f"failed to parse task history {path}: {e}") from e

    if raw is None:
        return []
    if not isinstance(raw, list):
        raise HistoryParseError(
            f"failed to parse task history {path}: expected a JSON array, got {type(raw).__name__}"
        )
    return [HistoryItem.from_dict(entry) for entry in raw]


def save_history(path: str | Path, items: Iterable[HistoryItem]) -> None:
    """Replace the whole history index with ``items``."""
    try:
        data = json.dumps(
            [item.to_dict() for item in items],
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        ).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise HistorySerializationError(f"failed to serialize task history: {e}") from e

    try:
        atomic_write_bytes(path, data)
    except OSError as e:
        raise HistoryWriteError(f"failed to write task history {path}: {e}") from e


def history_ids(path: str | Path) -> set[str]:
    """Return the trimmed, non-empty task IDs in the history index."""
    return {item.id.strip() for item in load_history(path) if item.id.strip()}


def partition_history(
    items: Iterable[HistoryItem],
    requested: Collection[str],
) -> tuple[list[HistoryItem], list[HistoryItem]]:
    """Split items into (kept, removed) by whether their trimmed ID is in ``requested``."""
    kept: list[HistoryItem] = []
    removed: list[HistoryItem] = []
    for item in items:
        if item.id.strip() in requested:
            removed.append(item)
        else:
            kept.append(item)
    return kept, removed

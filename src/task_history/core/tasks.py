"""Task history deletion and listing."""

import logging
import shutil
import stat
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import click

from task_history.config import Config
from task_history.core.history import load_history, partition_history, save_history
from task_history.core.locks import (
    DEFAULT_PATH_STRATEGIES,
    FolderLockManager,
    PathStrategy,
    remove_task_folder_locks,
)
from task_history.db.models import DeleteTasksSummary, TaskDisplay
from task_history.errors import ConfigurationError, InvalidTaskIDError, TaskDirectoryError

logger = logging.getLogger(__name__)

NO_HISTORY_MESSAGE = "No task history found."


class TaskListRenderer(Protocol):
    def render_task_list(self, tasks: list[TaskDisplay]) -> None:
        ...


@dataclass
class StoragePaths:
    history_file: Path
    tasks_dir: Path
    checkpoints_dir: Path


def normalize_task_ids(task_ids: Iterable[str]) -> list[str]:
    """Trim, drop blanks and dedupe, keeping first-seen order."""
    seen: list[str] = []
    for task_id in task_ids:
        task_id = task_id.strip()
        if task_id and task_id not in seen:
            seen.append(task_id)
    return seen


def is_valid_task_id(task_id: str) -> bool:
    """Whether the ID names exactly one directory under the tasks dir."""
    return not (task_id in (".", "..") or "/" in task_id or "\\" in task_id or "\0" in task_id)


def _check_task_id(task_id: str):
    if not is_valid_task_id(task_id):
        raise InvalidTaskIDError(f"Invalid task ID: {task_id!r}")


class TaskHistoryManager:
    """Deletes and lists tasks recorded in the history index under one storage root."""

    def __init__(
        self,
        config: Config | None,
        lock_manager_factory: Callable[[Path], FolderLockManager] = FolderLockManager,
        path_strategies: Sequence[PathStrategy] = DEFAULT_PATH_STRATEGIES,
    ):
        self.config = config
        self._lock_manager_factory = lock_manager_factory
        self._path_strategies = tuple(path_strategies)

    def _paths(self) -> StoragePaths:
        if self.config is None or not self.config.config_path:
            raise ConfigurationError("Task history storage root is not configured")
        return StoragePaths(
            history_file=self.config.history_file,
            tasks_dir=self.config.tasks_dir,
            checkpoints_dir=self.config.checkpoints_dir,
        )

    def delete_tasks(self, task_ids: Sequence[str]) -> DeleteTasksSummary:
        """Delete tasks from the history index, then their directories and folder locks.

        The index is rewritten before any directory is touched, so a failure
        part way can leave a task directory without a history entry but never
        a history entry whose directory was already deleted. When the history
        ends up empty the shared tasks and checkpoints dirs are removed too.
        """
        paths = self._paths()
        requested = normalize_task_ids(task_ids)
        for task_id in requested:
            _check_task_id(task_id)

        summary = DeleteTasksSummary(
            requested_task_ids=list(task_ids),
            history_file_path=str(paths.history_file),
        )

        items = load_history(paths.history_file)
        kept, removed = partition_history(items, set(requested))
        summary.history_items_removed = len(removed)

        known_ids = {item.id.strip() for item in items}
        summary.history_items_not_found = [i for i in requested if i not in known_ids]

        save_history(paths.history_file, kept)

        for task_id in requested:
            task_dir = paths.tasks_dir / task_id
            if _remove_task_dir(task_dir):
                summary.task_dirs_deleted.append(str(task_dir))
            else:
                summary.task_dirs_missing.append(str(task_dir))

        summary.folder_locks_removed = remove_task_folder_locks(
            self.config,
            requested,
            manager_factory=self._lock_manager_factory,
            strategies=self._path_strategies,
        )

        if not kept:
            summary.tasks_dir_removed = _remove_base_dir(paths.tasks_dir)
            summary.checkpoints_dir_removed = _remove_base_dir(paths.checkpoints_dir)

        logger.info(
            "Deleted %d history item(s), %d task dir(s), %d folder lock(s)",
            summary.history_items_removed,
            len(summary.task_dirs_deleted),
            summary.folder_locks_removed,
        )
        return summary

    def delete_all_tasks(self) -> DeleteTasksSummary:
        """Delete every task currently in the history index.

        Entries whose ID cannot name a task directory are skipped and stay in
        the history.
        """
        task_ids = []
        for task_id in self.list_task_ids():
            if is_valid_task_id(task_id):
                task_ids.append(task_id)
            else:
                logger.warning("Skipping history entry with invalid task ID %r", task_id)
        return self.delete_tasks(task_ids)

    def list_task_ids(self) -> list[str]:
        """Trimmed, non-empty task IDs in history file order."""
        items = load_history(self._paths().history_file)
        return [item.id.strip() for item in items if item.id.strip()]

    def task_displays(self) -> list[TaskDisplay]:
        """History entries as display records, oldest first. Equal timestamps keep file order."""
        items = load_history(self._paths().history_file)
        items.sort(key=lambda item: item.ts)
        return [TaskDisplay.from_history_item(item) for item in items]

    def list_tasks(self, renderer: TaskListRenderer) -> list[TaskDisplay]:
        """Render the history oldest first. Prints a notice instead when it is empty."""
        tasks = self.task_displays()
        if not tasks:
            click.echo(NO_HISTORY_MESSAGE)
            return []
        renderer.render_task_list(tasks)
        return tasks


def _remove_task_dir(task_dir: Path) -> bool:
    """Remove a task directory. Returns False if it did not exist."""
    try:
        is_dir = stat.S_ISDIR(task_dir.lstat().st_mode)
    except FileNotFoundError:
        return False
    except OSError as e:
        raise TaskDirectoryError(f"failed to stat task dir {task_dir}: {e}") from e

    try:
        if is_dir:
            shutil.rmtree(task_dir)
        else:
            task_dir.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        raise TaskDirectoryError(f"failed to remove task dir {task_dir}: {e}") from e
    return True


def _remove_base_dir(path: Path) -> bool:
    """Best-effort recursive removal. An already-absent dir counts as removed."""
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.warning("Failed to remove %s: %s", path, e)
        return False
    return True

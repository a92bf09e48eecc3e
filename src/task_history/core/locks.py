"""Folder lock store and best-effort release of locks held on task directories."""

import logging
import sqlite3
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from pathlib import Path

from task_history.config import Config
from task_history.db.engine import init_db
from task_history.db.models import FolderLock
from task_history.errors import LockManagerError

logger = logging.getLogger(__name__)

FOLDER_LOCK = "folder"


class FolderLockManager:
    """Advisory folder locks kept in a shared sqlite database."""

    def __init__(self, db_path: str | Path):
        try:
            self._db = init_db(Path(db_path))
        except (sqlite3.Error, OSError) as e:
            raise LockManagerError(f"failed to open lock database {db_path}: {e}") from e

    def __enter__(self) -> "FolderLockManager":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._db.close()

    def acquire_folder_lock(self, lock_target: str, held_by: str) -> bool:
        """Take the lock on ``lock_target``. Returns False if someone else holds it."""
        cur = self._db.execute(
            "INSERT OR IGNORE INTO locks (held_by, lock_type, lock_target) VALUES (?, ?, ?)",
            (held_by, FOLDER_LOCK, lock_target),
        )
        self._db.commit()
        if cur.rowcount == 1:
            return True
        row = self._db.execute(
            "SELECT held_by FROM locks WHERE lock_type = ? AND lock_target = ?",
            (FOLDER_LOCK, lock_target),
        ).fetchone()
        return row is not None and row["held_by"] == held_by

    def release_folder_lock(self, lock_target: str, held_by: str) -> bool:
        """Release a lock only if ``held_by`` owns it."""
        cur = self._db.execute(
            "DELETE FROM locks WHERE lock_type = ? AND lock_target = ? AND held_by = ?",
            (FOLDER_LOCK, lock_target, held_by),
        )
        self._db.commit()
        return cur.rowcount > 0

    def remove_folder_lock(self, lock_target: str) -> int:
        """Remove any lock on ``lock_target`` regardless of holder."""
        cur = self._db.execute(
            "DELETE FROM locks WHERE lock_type = ? AND lock_target = ?",
            (FOLDER_LOCK, lock_target),
        )
        self._db.commit()
        return cur.rowcount

    def list_folder_locks(self) -> list[FolderLock]:
        rows = self._db.execute(
            "SELECT * FROM locks WHERE lock_type = ? ORDER BY locked_at, id",
            (FOLDER_LOCK,),
        ).fetchall()
        return [_row_to_lock(r) for r in rows]


# ── Lock target spellings ───────────────────────────────────────────────────

PathStrategy = Callable[[Config, str], Iterable[str]]


def canonical_task_path(config: Config, task_id: str) -> Iterable[str]:
    """The task directory under the configured root, with forward slashes."""
    yield (config.tasks_dir / task_id).as_posix()


def home_relative_task_path(config: Config, task_id: str) -> Iterable[str]:
    """``~/...`` spelling of the task directory when it lives under the home dir."""
    task_dir = config.tasks_dir / task_id
    try:
        relative = task_dir.relative_to(Path.home())
    except ValueError:
        return
    yield f"~/{relative.as_posix()}"


def legacy_prefix_task_paths(config: Config, task_id: str) -> Iterable[str]:
    """One spelling per configured legacy tasks-dir prefix."""
    for prefix in config.legacy_lock_prefixes:
        yield f"{prefix.rstrip('/')}/{task_id}"


DEFAULT_PATH_STRATEGIES: tuple[PathStrategy, ...] = (
    canonical_task_path,
    home_relative_task_path,
    legacy_prefix_task_paths,
)


def lock_targets_for(
    config: Config,
    task_id: str,
    strategies: Sequence[PathStrategy] = DEFAULT_PATH_STRATEGIES,
) -> list[str]:
    """Every distinct spelling a lock on this task's directory may have been taken under."""
    targets: list[str] = []
    for strategy in strategies:
        for target in strategy(config, task_id):
            if target not in targets:
                targets.append(target)
    return targets


def remove_task_folder_locks(
    config: Config,
    task_ids: Iterable[str],
    manager_factory: Callable[[Path], FolderLockManager] = FolderLockManager,
    strategies: Sequence[PathStrategy] = DEFAULT_PATH_STRATEGIES,
) -> int:
    """Drop folder locks held on the given tasks' directories. Returns the number removed.

    Folder locks are advisory, so a lock store that cannot be opened counts as
    zero locks and a failed removal is skipped.
    """
    try:
        manager = manager_factory(config.locks_db_path)
    except LockManagerError as e:
        logger.warning("Folder lock store unavailable, skipping lock cleanup: %s", e)
        return 0

    removed = 0
    try:
        for task_id in task_ids:
            task_id = task_id.strip()
            if not task_id:
                continue
            try:
                targets = lock_targets_for(config, task_id, strategies)
            except Exception as e:
                logger.warning("Failed to compute folder lock paths for task %s: %s", task_id, e)
                continue
            for target in targets:
                try:
                    n = manager.remove_folder_lock(target)
                except sqlite3.Error as e:
                    logger.warning("Failed to remove folder lock on %s: %s", target, e)
                    continue
                if n:
                    logger.debug("Removed %d folder lock(s) on %s", n, target)
                removed += n
    finally:
        manager.close()
    return removed


def _row_to_lock(row: sqlite3.Row) -> FolderLock:
    return FolderLock(
        id=row["id"],
        held_by=row["held_by"],
        lock_type=row["lock_type"],
        lock_target=row["lock_target"],
        locked_at=_parse_dt(row["locked_at"]),
    )


def _parse_dt(val: str | None) -> datetime | None:
    if val is None:
        return None
    return datetime.fromisoformat(val)

"""Data models for task history."""

from dataclasses import asdict, dataclass, field
from datetime import datetime

from task_history.errors import HistoryParseError

# (json name, attribute, accepted JSON types)
_HISTORY_FIELDS = (
    ("id", "id", (str,)),
    ("task", "task", (str,)),
    ("ts", "ts", (int,)),
    ("isFavorited", "is_favorited", (bool,)),
    ("size", "size", (int,)),
    ("totalCost", "total_cost", (int, float)),
    ("tokensIn", "tokens_in", (int,)),
    ("tokensOut", "tokens_out", (int,)),
    ("cacheWrites", "cache_writes", (int,)),
    ("cacheReads", "cache_reads", (int,)),
)


@dataclass
class HistoryItem:
    id: str
    task: str = ""
    ts: int = 0
    is_favorited: bool = False
    size: int = 0
    total_cost: float = 0.0
    tokens_in: int = 0
    tokens_out: int = 0
    cache_writes: int = 0
    cache_reads: int = 0
    # JSON fields this model does not know about, kept so a rewrite never drops them
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict) -> "HistoryItem":
        """Build an item from one decoded JSON object, validating field types."""
        if not isinstance(raw, dict):
            raise HistoryParseError(f"history item must be a JSON object, got {type(raw).__name__}")

        values = {}
        known = set()
        for json_name, attr, types in _HISTORY_FIELDS:
            known.add(json_name)
            value = raw.get(json_name)
            if value is None:
                continue
            # bool is an int subclass; only isFavorited may hold one
            if not isinstance(value, types) or (isinstance(value, bool) and bool not in types):
                raise HistoryParseError(
                    f"history item field {json_name!r} has invalid value {value!r}"
                )
            values[attr] = value

        values.setdefault("id", "")
        extra = {k: v for k, v in raw.items() if k not in known}
        return cls(**values, extra=extra)

    def to_dict(self) -> dict:
        data = dict(self.extra)
        for json_name, attr, _ in _HISTORY_FIELDS:
            data[json_name] = getattr(self, attr)
        return data


@dataclass
class TaskDisplay:
    """A history entry as handed to renderers."""

    id: str
    task: str
    ts: int
    is_favorited: bool
    size: int
    total_cost: float
    tokens_in: int
    tokens_out: int
    cache_writes: int
    cache_reads: int

    @classmethod
    def from_history_item(cls, item: HistoryItem) -> "TaskDisplay":
        return cls(
            id=item.id,
            task=item.task,
            ts=item.ts,
            is_favorited=item.is_favorited,
            size=item.size,
            total_cost=item.total_cost,
            tokens_in=item.tokens_in,
            tokens_out=item.tokens_out,
            cache_writes=item.cache_writes,
            cache_reads=item.cache_reads,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DeleteTasksSummary:
    requested_task_ids: list[str] = field(default_factory=list)
    history_file_path: str = ""
    history_items_removed: int = 0
    history_items_not_found: list[str] = field(default_factory=list)
    task_dirs_deleted: list[str] = field(default_factory=list)
    task_dirs_missing: list[str] = field(default_factory=list)
    folder_locks_removed: int = 0
    tasks_dir_removed: bool = False
    checkpoints_dir_removed: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class FolderLock:
    id: int | None = None
    held_by: str = ""
    lock_type: str = "folder"
    lock_target: str = ""
    locked_at: datetime | None = None

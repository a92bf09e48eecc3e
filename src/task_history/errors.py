"""Exceptions raised by task history operations."""


class TaskHistoryError(Exception):
    """Base class for task history failures."""


class ConfigurationError(TaskHistoryError):
    """Raised when the storage root cannot be resolved from configuration."""


class InvalidTaskIDError(TaskHistoryError):
    """Raised when a task ID cannot name a directory under the tasks dir."""


class HistoryReadError(TaskHistoryError):
    """Raised when the history file exists but cannot be read."""


class HistoryParseError(TaskHistoryError):
    """Raised when the history file is not a valid JSON array of history items."""


class HistorySerializationError(TaskHistoryError):
    """Raised when history items cannot be encoded as JSON."""


class HistoryWriteError(TaskHistoryError):
    """Raised when the history file cannot be written."""


class TaskDirectoryError(TaskHistoryError):
    """Raised on a task directory stat or removal failure other than not-found."""


class LockManagerError(TaskHistoryError):
    """Raised when the folder lock store cannot be opened."""

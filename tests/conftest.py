"""Shared fixtures for task history tests."""

import json

import pytest

from task_history.config import Config


@pytest.fixture
def config(tmp_path):
    """A config rooted in a fresh temporary directory."""
    return Config(config_path=tmp_path / "root")


@pytest.fixture
def write_history(config):
    """Write raw history entries (list of dicts) to the configured history file."""

    def _write(entries):
        config.history_file.parent.mkdir(parents=True, exist_ok=True)
        config.history_file.write_text(json.dumps(entries))
        return config.history_file

    return _write


@pytest.fixture
def make_task_dir(config):
    """Create a task directory with a file in it."""

    def _make(task_id):
        task_dir = config.tasks_dir / task_id
        task_dir.mkdir(parents=True, exist_ok=True)
        (task_dir / "api_conversation_history.json").write_text("[]")
        return task_dir

    return _make

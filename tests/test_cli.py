"""Tests for the CLI."""

import json

import pytest
from click.testing import CliRunner

from task_history.cli import main
from task_history.core import locks as locks_mod


@pytest.fixture
def cli_env(config, monkeypatch):
    """Point the CLI at a temp storage root."""
    monkeypatch.setenv("TH_CONFIG_PATH", str(config.config_path))
    for var in ("TH_SETTINGS_SUBFOLDER", "TH_OUTPUT_FORMAT", "TH_LOG_LEVEL", "TH_LEGACY_LOCK_PREFIXES"):
        monkeypatch.delenv(var, raising=False)
    return CliRunner()


class TestCLI:
    def test_help(self, cli_env):
        result = cli_env.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Task History" in result.output

    def test_list_empty(self, cli_env):
        result = cli_env.invoke(main, ["task", "list"])
        assert result.exit_code == 0
        assert "No task history found." in result.output

    def test_list_oldest_first(self, cli_env, write_history):
        write_history([
            {"id": "newer", "task": "Second task", "ts": 1700000005000},
            {"id": "older", "task": "First task\nwith details", "ts": 1700000002000, "isFavorited": True},
        ])
        result = cli_env.invoke(main, ["task", "list"])
        assert result.exit_code == 0
        assert result.output.index("older") < result.output.index("newer")
        assert "First task" in result.output
        assert "with details" not in result.output

    def test_list_json(self, cli_env, write_history):
        write_history([{"id": "b", "ts": 5}, {"id": "a", "ts": 2}])
        result = cli_env.invoke(main, ["task", "list", "--json"])
        assert result.exit_code == 0
        assert [t["id"] for t in json.loads(result.output)] == ["a", "b"]

    def test_output_format_from_env(self, cli_env, write_history, monkeypatch):
        write_history([{"id": "a", "ts": 2}])
        monkeypatch.setenv("TH_OUTPUT_FORMAT", "json")
        result = cli_env.invoke(main, ["task", "list"])
        assert result.exit_code == 0
        assert json.loads(result.output)[0]["id"] == "a"

    def test_ids(self, cli_env, write_history):
        write_history([{"id": "z", "ts": 9}, {"id": "a", "ts": 1}])
        result = cli_env.invoke(main, ["task", "ids"])
        assert result.exit_code == 0
        assert result.output.split() == ["z", "a"]

    def test_bad_output_format_reports_error(self, cli_env, monkeypatch):
        monkeypatch.setenv("TH_OUTPUT_FORMAT", "yaml")
        result = cli_env.invoke(main, ["task", "ids"])
        assert result.exit_code == 1
        assert "Error: TH_OUTPUT_FORMAT must be one of" in result.output

    def test_corrupt_history_reports_error(self, cli_env, config):
        config.history_file.parent.mkdir(parents=True)
        config.history_file.write_text("not json")
        result = cli_env.invoke(main, ["task", "ids"])
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestDeleteCommand:
    def test_delete_with_yes(self, cli_env, config, write_history, make_task_dir):
        write_history([{"id": "a", "ts": 1}, {"id": "b", "ts": 2}])
        make_task_dir("a")
        result = cli_env.invoke(main, ["task", "delete", "a", "c", "--yes"])
        assert result.exit_code == 0
        assert "Removed from history: 1" in result.output
        assert "Not in history: c" in result.output
        assert not (config.tasks_dir / "a").exists()

    def test_delete_json_summary(self, cli_env, write_history):
        write_history([{"id": "a", "ts": 1}])
        result = cli_env.invoke(main, ["task", "delete", "a", "-y", "--json"])
        assert result.exit_code == 0
        summary = json.loads(result.output)
        assert summary["history_items_removed"] == 1
        assert summary["tasks_dir_removed"] is True
        assert summary["checkpoints_dir_removed"] is True

    def test_delete_asks_for_confirmation(self, cli_env, config, write_history):
        write_history([{"id": "a", "ts": 1}])
        result = cli_env.invoke(main, ["task", "delete", "a"], input="n\n")
        assert result.exit_code == 1
        assert "Aborted" in result.output
        assert "a" in config.history_file.read_text()

    def test_delete_all(self, cli_env, config, write_history):
        write_history([{"id": "a"}, {"id": "b"}])
        result = cli_env.invoke(main, ["task", "delete", "--all"], input="y\n")
        assert result.exit_code == 0
        assert "Removed from history: 2" in result.output
        assert config.history_file.read_text() == "[]"

    def test_delete_needs_ids(self, cli_env):
        result = cli_env.invoke(main, ["task", "delete", "--yes"])
        assert result.exit_code == 1
        assert "No task IDs given" in result.output

    def test_delete_rejects_ids_with_all(self, cli_env):
        result = cli_env.invoke(main, ["task", "delete", "a", "--all", "--yes"])
        assert result.exit_code == 1

    def test_delete_invalid_id(self, cli_env, write_history):
        write_history([{"id": "a"}])
        result = cli_env.invoke(main, ["task", "delete", "../a", "--yes"])
        assert result.exit_code == 1
        assert "Invalid task ID" in result.output


class TestLockCommands:
    def test_lock_list(self, cli_env, config):
        result = cli_env.invoke(main, ["lock", "list"])
        assert result.exit_code == 0
        assert "No folder locks held." in result.output

        with locks_mod.FolderLockManager(config.locks_db_path) as m:
            m.acquire_folder_lock("/work/tasks/a", "instance-1")
        result = cli_env.invoke(main, ["lock", "list"])
        assert result.exit_code == 0
        assert "/work/tasks/a" in result.output
        assert "instance-1" in result.output

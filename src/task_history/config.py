"""Configuration loading from environment variables."""

import os
from dataclasses import dataclass, field
from pathlib import Path

OUTPUT_FORMATS = ("plain", "json")


@dataclass
class Config:
    config_path: Path | None = field(default_factory=lambda: Path.home() / ".task-history")
    settings_subfolder: str = "data"
    output_format: str = "plain"
    log_level: str = "WARNING"
    legacy_lock_prefixes: tuple[str, ...] = ()

    @classmethod
    def from_env(cls) -> "Config":
        config = cls()

        if root := os.environ.get("TH_CONFIG_PATH"):
            config.config_path = Path(root).expanduser()

        if subfolder := os.environ.get("TH_SETTINGS_SUBFOLDER"):
            config.settings_subfolder = subfolder

        if fmt := os.environ.get("TH_OUTPUT_FORMAT"):
            fmt = fmt.strip().lower()
            if fmt not in OUTPUT_FORMATS:
                raise ValueError(f"TH_OUTPUT_FORMAT must be one of {', '.join(OUTPUT_FORMATS)}")
            config.output_format = fmt

        if level := os.environ.get("TH_LOG_LEVEL"):
            config.log_level = level.strip().upper()

        if prefixes := os.environ.get("TH_LEGACY_LOCK_PREFIXES"):
            config.legacy_lock_prefixes = tuple(
                p.strip() for p in prefixes.split(os.pathsep) if p.strip()
            )

        return config

    @property
    def settings_dir(self) -> Path:
        return Path(self.config_path) / self.settings_subfolder

    @property
    def history_file(self) -> Path:
        return self.settings_dir / "state" / "taskHistory.json"

    @property
    def tasks_dir(self) -> Path:
        return self.settings_dir / "tasks"

    @property
    def checkpoints_dir(self) -> Path:
        return self.settings_dir / "checkpoints"

    @property
    def locks_db_path(self) -> Path:
        return self.settings_dir / "locks.db"


def get_config() -> Config:
    return Config.from_env()

"""Ideaboard configuration management."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class Config:
    """Ideaboard configuration."""

    workspace_path: Path = field(default_factory=lambda: Path.home() / ".ideaboard")
    log_level: str = "INFO"
    wal_mode: bool = True

    # Seconds a writer waits for the database lock before failing
    busy_timeout: float = 5.0
    # Bounded retries of a whole transaction on lock conflicts
    transaction_retries: int = 3

    # Window feeding the recent counters of the trending score
    recent_window_days: int = 30
    list_limit: int = 50

    @classmethod
    def load(cls, workspace_path: Path | None = None) -> Config:
        """Load config from defaults, then YAML file, then env vars."""
        config = cls()

        if workspace_path:
            config.workspace_path = workspace_path

        env_path = os.environ.get("IDEABOARD_WORKSPACE")
        if env_path:
            config.workspace_path = Path(env_path)

        config_file = config.workspace_path / "config.yaml"
        if config_file.exists():
            with open(config_file) as f:
                data = yaml.safe_load(f) or {}
            for key, value in data.items():
                if key == "workspace_path" or not hasattr(config, key):
                    continue
                expected_type = type(getattr(config, key))
                setattr(config, key, expected_type(value))

        env_log = os.environ.get("IDEABOARD_LOG_LEVEL")
        if env_log:
            config.log_level = env_log

        return config

    @property
    def db_path(self) -> Path:
        return self.workspace_path / "ideaboard.db"

    def configure_logging(self) -> None:
        logging.basicConfig(
            level=self.log_level.upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    def save(self) -> None:
        """Save current config to YAML."""
        self.workspace_path.mkdir(parents=True, exist_ok=True)
        config_file = self.workspace_path / "config.yaml"
        data = {
            "log_level": self.log_level,
            "wal_mode": self.wal_mode,
            "busy_timeout": self.busy_timeout,
            "transaction_retries": self.transaction_retries,
            "recent_window_days": self.recent_window_days,
            "list_limit": self.list_limit,
        }
        with open(config_file, "w") as f:
            yaml.dump(data, f, default_flow_style=False)

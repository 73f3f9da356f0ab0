"""Tests for configuration loading."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from ideaboard.config import Config


def test_defaults(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("IDEABOARD_WORKSPACE", raising=False)
    monkeypatch.delenv("IDEABOARD_LOG_LEVEL", raising=False)
    config = Config.load(tmp_path)

    assert config.workspace_path == tmp_path
    assert config.db_path == tmp_path / "ideaboard.db"
    assert config.log_level == "INFO"
    assert config.recent_window_days == 30
    assert config.transaction_retries == 3


def test_yaml_overrides_defaults(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("IDEABOARD_WORKSPACE", raising=False)
    monkeypatch.delenv("IDEABOARD_LOG_LEVEL", raising=False)
    (tmp_path / "config.yaml").write_text(
        yaml.dump({"log_level": "DEBUG", "busy_timeout": 2, "unknown_key": "ignored"})
    )

    config = Config.load(tmp_path)

    assert config.log_level == "DEBUG"
    assert config.busy_timeout == 2.0
    assert isinstance(config.busy_timeout, float)
    assert not hasattr(config, "unknown_key")


def test_env_overrides_yaml(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "config.yaml").write_text(yaml.dump({"log_level": "DEBUG"}))
    monkeypatch.setenv("IDEABOARD_WORKSPACE", str(tmp_path))
    monkeypatch.setenv("IDEABOARD_LOG_LEVEL", "WARNING")

    config = Config.load()

    assert config.workspace_path == tmp_path
    assert config.log_level == "WARNING"


def test_save_and_reload(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("IDEABOARD_WORKSPACE", raising=False)
    monkeypatch.delenv("IDEABOARD_LOG_LEVEL", raising=False)
    config = Config(workspace_path=tmp_path / "ws", recent_window_days=14, list_limit=10)
    config.save()

    reloaded = Config.load(tmp_path / "ws")
    assert reloaded.recent_window_days == 14
    assert reloaded.list_limit == 10


def test_configure_logging(config: Config, monkeypatch) -> None:
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.update(kw))
    config.log_level = "debug"
    config.configure_logging()
    assert calls["level"] == "DEBUG"

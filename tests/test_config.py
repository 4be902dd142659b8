from __future__ import annotations

from pathlib import Path

import pytest

from synapse_battery.config import WatcherConfig, get_log_level, load_config, load_watcher_config
from synapse_battery.const import DEFAULT_POLLING_INTERVAL, default_log_dir
from synapse_battery.exceptions import ConfigError


def test_defaults_without_file(monkeypatch, tmp_path):
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path))
    config = load_watcher_config(None)
    assert config.polling_interval_s == DEFAULT_POLLING_INTERVAL
    assert config.shown_device_handle == ""
    assert config.log_dir == tmp_path / "Razer" / "RazerAppEngine" / "User Data" / "Logs"
    assert default_log_dir() == config.log_dir


def test_yaml_file_is_read(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "watcher:\n"
        f"  log_dir: {tmp_path.as_posix()}/Logs\n"
        "  polling_interval_s: 2\n"
        "  shown_device_handle: PM2145H\n"
        "log:\n"
        "  level: debug\n",
        encoding="utf-8",
    )
    config = load_watcher_config(path)
    assert config.log_dir == Path(f"{tmp_path.as_posix()}/Logs")
    assert config.polling_interval_s == 2.0
    assert config.shown_device_handle == "PM2145H"
    assert get_log_level(load_config(path)) == "DEBUG"


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError, match="Missing configuration file"):
        load_config(tmp_path / "nope.yaml")


@pytest.mark.parametrize("text", ["- a\n- b\n", "watcher: [1, 2]\n", "watcher: {polling_interval_s: 0}\n",
                                  "watcher: {polling_interval_s: soon}\n", "watcher: {shown_device_handle: 5}\n"])
def test_invalid_content_raises(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_watcher_config(path)


def test_broken_yaml_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("watcher: {unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="Failed to parse YAML"):
        load_config(path)


def test_overrides_skip_none(tmp_path):
    config = WatcherConfig(log_dir=tmp_path, polling_interval_s=3)
    updated = config.with_overrides(polling_interval_s=None, shown_device_handle="X")
    assert updated.polling_interval_s == 3
    assert updated.shown_device_handle == "X"
    assert config.shown_device_handle == ""


def test_log_level_default():
    assert get_log_level({}) == "INFO"
    assert get_log_level(None, default="warning") == "WARNING"

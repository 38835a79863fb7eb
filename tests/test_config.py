"""Tests for chatline.config module."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from chatline.config import (
    CONFIG_FILENAME,
    ChatlineConfig,
    create_default_config,
    find_config,
    load_config,
    merge_config,
    write_config,
)
from chatline.exceptions import ConfigError


class TestChatlineConfig:
    def test_defaults(self) -> None:
        config = ChatlineConfig()
        assert config.poll_interval_ms == 50
        assert config.settle_delay_ms == 50
        assert config.rewind_window_ms == 500
        assert config.repeat_rate == 0.75
        assert config.end_epsilon_ms == 100
        assert config.device == "polling"

    def test_invalid_device_raises(self) -> None:
        with pytest.raises(ValueError):
            ChatlineConfig(device="cassette")

    def test_repeat_rate_must_slow_down(self) -> None:
        with pytest.raises(ValueError):
            ChatlineConfig(repeat_rate=1.0)
        with pytest.raises(ValueError):
            ChatlineConfig(repeat_rate=0.0)

    def test_non_positive_poll_interval_raises(self) -> None:
        with pytest.raises(ValueError):
            ChatlineConfig(poll_interval_ms=0)

    def test_speaker_overrides_normalized(self) -> None:
        config = ChatlineConfig(left_speaker=" Jack ", right_speaker="")
        assert config.left_speaker == "jack"
        assert config.right_speaker is None


class TestMergeConfig:
    def test_file_values_override_defaults(self) -> None:
        merged = merge_config({"device": "push"}, {"device": "polling", "cache_size": 8})
        assert merged == {"device": "push", "cache_size": 8}

    def test_none_does_not_override(self) -> None:
        merged = merge_config({"cache_size": None}, {"cache_size": 8})
        assert merged["cache_size"] == 8


class TestLoadConfig:
    def test_load_from_directory(self, tmp_path: Path) -> None:
        write_config({"device": "push", "repeat_rate": 0.5}, tmp_path / CONFIG_FILENAME)

        config = load_config(tmp_path)

        assert config.device == "push"
        assert config.repeat_rate == 0.5
        assert config.poll_interval_ms == 50
        assert config.config_path == tmp_path / CONFIG_FILENAME

    def test_load_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.yaml"
        write_config({"rewind_window_ms": 800}, path)

        assert load_config(path).rewind_window_ms == 800

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        assert load_config(tmp_path).device == "polling"

    def test_missing_config_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path)

    def test_invalid_values_raise_config_error(self, tmp_path: Path) -> None:
        write_config({"device": "cassette"}, tmp_path / CONFIG_FILENAME)
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_invalid_yaml_raises_config_error(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("device: [unclosed")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_non_mapping_raises_config_error(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("- just\n- a list\n")
        with pytest.raises(ConfigError):
            load_config(tmp_path)


class TestFindConfig:
    def test_finds_in_parent(self, tmp_path: Path) -> None:
        write_config(create_default_config(), tmp_path / CONFIG_FILENAME)
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert find_config(nested) == (tmp_path / CONFIG_FILENAME).resolve()


class TestCreateDefaultConfig:
    def test_round_trips_through_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        write_config(create_default_config("push"), path)

        with open(path) as f:
            data = yaml.safe_load(f)

        assert data["device"] == "push"
        assert ChatlineConfig(**data).device == "push"

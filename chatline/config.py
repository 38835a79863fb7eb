"""
chatline.config - YAML config loading, default merging, validation.

Handles loading chatline.yaml, merging it over the built-in defaults,
and validating all playback parameters.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from chatline.exceptions import ConfigError

CONFIG_FILENAME = "chatline.yaml"


class ChatlineConfig(BaseModel):
    """Resolved configuration for a replay session."""

    poll_interval_ms: int = Field(default=50, gt=0)
    settle_delay_ms: int = Field(default=50, ge=0)
    progress_interval_ms: int = Field(default=250, gt=0)

    rewind_window_ms: int = Field(default=500, ge=0)
    repeat_rate: float = 0.75
    end_epsilon_ms: int = Field(default=100, ge=0)

    cache_size: int = Field(default=8, ge=0)
    device: str = "polling"

    left_speaker: str | None = None
    right_speaker: str | None = None

    config_path: Path | None = None

    @field_validator("repeat_rate")
    @classmethod
    def validate_repeat_rate(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError("repeat_rate must be between 0.0 and 1.0 (exclusive)")
        return v

    @field_validator("device")
    @classmethod
    def validate_device(cls, v: str) -> str:
        valid = {"polling", "push"}
        if v not in valid:
            raise ValueError(f"device must be one of: {valid}")
        return v

    @field_validator("left_speaker", "right_speaker")
    @classmethod
    def normalize_speaker(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip().lower() or None


DEFAULTS: dict[str, Any] = {
    "poll_interval_ms": 50,
    "settle_delay_ms": 50,
    "progress_interval_ms": 250,
    "rewind_window_ms": 500,
    "repeat_rate": 0.75,
    "end_epsilon_ms": 100,
    "cache_size": 8,
    "device": "polling",
}


def merge_config(file_config: dict[str, Any], defaults: dict[str, Any]) -> dict[str, Any]:
    """Merge file config over defaults. Explicit None values do not override."""
    merged = defaults.copy()
    for key, value in file_config.items():
        if value is not None:
            merged[key] = value
    return merged


def find_config(start: Path | None = None) -> Path | None:
    """Find chatline.yaml by walking up from start (default: cwd)."""
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def load_config(path: Path) -> ChatlineConfig:
    """Load and validate configuration from a file or a directory containing one.

    Raises:
        FileNotFoundError: If no chatline.yaml exists at path
        ConfigError: If the file is not valid YAML or fails validation
    """
    config_file = path / CONFIG_FILENAME if path.is_dir() else path
    if not config_file.exists():
        raise FileNotFoundError(f"No {CONFIG_FILENAME} found at {path}")

    try:
        with open(config_file, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError(f"{config_file} must contain a mapping")

    merged = merge_config(raw_config, DEFAULTS)
    merged["config_path"] = config_file

    try:
        return ChatlineConfig(**merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_file}: {e}") from e


def create_default_config(device: str = "polling") -> dict[str, Any]:
    """Create a default config dict, ready to be written as YAML."""
    return merge_config({"device": device}, DEFAULTS)


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)

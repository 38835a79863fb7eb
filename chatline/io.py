"""
chatline.io - Transcription loading and timeline export.

Reads transcription files (JSON or YAML) into validated models and writes
built timelines as JSON with atomic file writes.
"""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from chatline.exceptions import TranscriptionError
from chatline.timeline.builder import total_duration
from chatline.timeline.models import PhraseTiming, Transcription

YAML_SUFFIXES = {".yaml", ".yml"}


def read_json(path: Path) -> dict[str, Any]:
    """Read JSON file with UTF-8 encoding.

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file contains invalid JSON
    """
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def write_json(path: Path, data: dict[str, Any], indent: int = 2) -> None:
    """Write JSON file atomically with pretty formatting.

    Writes to a temp file in the destination directory, then renames over
    the target.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            json.dump(data, tmp, indent=indent, ensure_ascii=False)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
    tmp_path.replace(path)


def load_transcription(path: Path) -> Transcription:
    """Load and validate a transcription file.

    JSON is the default; .yaml/.yml files are parsed as YAML.

    Args:
        path: Path to transcription file

    Returns:
        Validated Transcription

    Raises:
        FileNotFoundError: If file doesn't exist
        TranscriptionError: If the file can't be parsed or fails validation
    """
    if not path.exists():
        raise FileNotFoundError(f"Transcription not found: {path}")

    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            with open(path, encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        else:
            raw = read_json(path)
    except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
        raise TranscriptionError(f"Could not parse {path}: {e}") from e

    if not isinstance(raw, dict):
        raise TranscriptionError(f"{path} must contain an object with 'pause' and 'speakers'")

    try:
        return Transcription.model_validate(raw)
    except ValidationError as e:
        raise TranscriptionError(f"Invalid transcription in {path}: {e}") from e


def timeline_to_dict(timings: tuple[PhraseTiming, ...]) -> dict[str, Any]:
    """Serializable summary of a built timeline."""
    return {
        "phrase_count": len(timings),
        "total_duration_ms": total_duration(timings),
        "phrases": [timing.model_dump() for timing in timings],
    }


def export_timeline(path: Path, timings: tuple[PhraseTiming, ...]) -> None:
    """Write a built timeline to a JSON file."""
    write_json(path, timeline_to_dict(timings))

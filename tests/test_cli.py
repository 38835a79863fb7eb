"""Tests for chatline CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from chatline import __version__
from chatline.cli import app

runner = CliRunner()


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"chatline {__version__}" in result.output


class TestTimelineCommand:
    def test_prints_timeline(self, transcription_file: Path) -> None:
        result = runner.invoke(app, ["timeline", str(transcription_file)])
        assert result.exit_code == 0
        assert "6 phrase(s)" in result.output
        assert "00:07.55" in result.output

    def test_writes_json(self, transcription_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "timeline.json"
        result = runner.invoke(app, ["timeline", str(transcription_file), "--json", str(out)])

        assert result.exit_code == 0
        data = json.loads(out.read_text())
        assert data["phrase_count"] == 6

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["timeline", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_invalid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"pause": 0, "speakers": [{"name": "a", "phrases": [{"words": "x", "time": -1}]}]}))

        result = runner.invoke(app, ["timeline", str(path)])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_undecodable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "binary.json"
        path.write_bytes(b"\xff\xfe\x00")

        result = runner.invoke(app, ["timeline", str(path)])

        assert result.exit_code == 1
        assert "Could not parse" in result.output

    def test_empty_transcription(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.json"
        path.write_text(json.dumps({"pause": 0, "speakers": []}))

        result = runner.invoke(app, ["timeline", str(path)])

        assert result.exit_code == 0
        assert "no phrases" in result.output


class TestFeedCommand:
    def test_feed_at_cursor(self, transcription_file: Path) -> None:
        result = runner.invoke(app, ["feed", str(transcription_file), "--at", "1300"])

        assert result.exit_code == 0
        assert "Hello there" in result.output
        assert "I am fine" in result.output
        assert "How are you?" not in result.output
        assert "2/6 message(s)" in result.output

    def test_feed_before_start(self, transcription_file: Path) -> None:
        result = runner.invoke(app, ["feed", str(transcription_file), "--at=-1"])
        assert result.exit_code == 0
        assert "no messages yet" in result.output


class TestSimulateCommand:
    def test_simulate_steps(self, transcription_file: Path) -> None:
        result = runner.invoke(app, ["simulate", str(transcription_file), "play", "+1300"])

        assert result.exit_code == 0
        assert "I am fine" in result.output
        assert "Playback State" in result.output

    def test_simulate_push_device(self, transcription_file: Path) -> None:
        result = runner.invoke(
            app, ["simulate", str(transcription_file), "play", "+3000", "--device", "push"]
        )
        assert result.exit_code == 0
        assert "How are you?" in result.output

    def test_bad_step(self, transcription_file: Path) -> None:
        result = runner.invoke(app, ["simulate", str(transcription_file), "jump"])
        assert result.exit_code == 1
        assert "Unrecognized step" in result.output

    def test_bad_device(self, transcription_file: Path) -> None:
        result = runner.invoke(
            app, ["simulate", str(transcription_file), "play", "--device", "cassette"]
        )
        assert result.exit_code == 1


class TestPlayCommand:
    def test_fast_replay_completes(self, transcription_file: Path) -> None:
        result = runner.invoke(app, ["play", str(transcription_file), "--speed", "100"])
        assert result.exit_code == 0
        assert "Replayed 6 phrase(s)" in result.output

    def test_invalid_speed(self, transcription_file: Path) -> None:
        result = runner.invoke(app, ["play", str(transcription_file), "--speed", "0"])
        assert result.exit_code == 1

    def test_unknown_device(self, transcription_file: Path) -> None:
        result = runner.invoke(app, ["play", str(transcription_file), "--device", "bogus"])

        assert result.exit_code == 1
        assert "Unknown device" in result.output


class TestInitCommand:
    def test_writes_config(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["init", str(tmp_path), "--device", "push"])

        assert result.exit_code == 0
        assert "device: push" in (tmp_path / "chatline.yaml").read_text()

    def test_fails_if_exists(self, tmp_path: Path) -> None:
        (tmp_path / "chatline.yaml").write_text("device: polling\n")

        result = runner.invoke(app, ["init", str(tmp_path)])

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_explicit_config_is_used(self, tmp_path: Path, transcription_file: Path) -> None:
        config = tmp_path / "custom.yaml"
        config.write_text("device: cassette\n")

        result = runner.invoke(
            app, ["feed", str(transcription_file), "--config", str(config)]
        )

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from chatline.exceptions import DeviceTransportError
from chatline.playback.coordinator import PlaybackCoordinator
from chatline.playback.devices import SimulatedPollingDevice, SimulatedPushDevice
from chatline.playback.scheduler import ManualScheduler
from chatline.timeline.models import Transcription

# Timeline built from sample_transcription_dict (pause 250):
#   0 john [0, 1000)      1 jack [1250, 2450)   2 john [2700, 4200)
#   3 jack [4450, 5250)   4 john [5500, 6700)   5 jack [6950, 7550)
SAMPLE_TOTAL_MS = 7550


class FlakyPollingDevice(SimulatedPollingDevice):
    """Simulated polling device that fails the named commands."""

    def __init__(self, scheduler, fail_on=(), error=None) -> None:
        super().__init__(scheduler)
        self.fail_on = set(fail_on)
        self.error = error
        self.calls: list[str] = []

    def _maybe_fail(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise self.error or DeviceTransportError("rejected", operation)

    def play(self) -> None:
        self._maybe_fail("play")
        super().play()

    def pause(self) -> None:
        self._maybe_fail("pause")
        super().pause()

    def seek(self, time_ms: float) -> None:
        self._maybe_fail("seek")
        super().seek(time_ms)

    def set_rate(self, rate: float) -> None:
        self._maybe_fail("set_rate")
        super().set_rate(rate)


class Session:
    """A coordinator wired to a simulated device on a virtual clock."""

    def __init__(self, coordinator, device, scheduler, errors) -> None:
        self.coordinator = coordinator
        self.device = device
        self.scheduler = scheduler
        self.errors = errors

    def seek_and_settle(self, time_ms: float) -> None:
        self.coordinator.seek_to(time_ms)
        self.scheduler.advance(self.coordinator.config.settle_delay_ms)


def make_session(transcription, device_factory=SimulatedPollingDevice, load=True, **kwargs) -> Session:
    scheduler = ManualScheduler()
    device = device_factory(scheduler)
    errors: list = []
    coordinator = PlaybackCoordinator(
        transcription, device, scheduler, on_error=errors.append, **kwargs
    )
    if load:
        coordinator.load(SAMPLE_TOTAL_MS)
        scheduler.run_pending()
    return Session(coordinator, device, scheduler, errors)


@pytest.fixture
def sample_transcription_dict() -> dict:
    """Return a two-speaker transcription with three phrases each."""
    return {
        "pause": 250,
        "speakers": [
            {
                "name": "John",
                "phrases": [
                    {"words": "Hello there", "time": 1000},
                    {"words": "How are you?", "time": 1500},
                    {"words": "Nice to meet you", "time": 1200},
                ],
            },
            {
                "name": "Jack",
                "phrases": [
                    {"words": "I am fine", "time": 1200},
                    {"words": "Thank you", "time": 800},
                    {"words": "You too", "time": 600},
                ],
            },
        ],
    }


@pytest.fixture
def sample_transcription(sample_transcription_dict: dict) -> Transcription:
    return Transcription.model_validate(sample_transcription_dict)


@pytest.fixture
def transcription_file(tmp_path: Path, sample_transcription_dict: dict) -> Path:
    path = tmp_path / "conversation.json"
    path.write_text(json.dumps(sample_transcription_dict), encoding="utf-8")
    return path


@pytest.fixture
def session(sample_transcription: Transcription) -> Session:
    """Loaded polling session over the sample transcription."""
    return make_session(sample_transcription)


@pytest.fixture
def push_session(sample_transcription: Transcription) -> Session:
    """Loaded push session over the sample transcription."""
    return make_session(
        sample_transcription,
        device_factory=lambda scheduler: SimulatedPushDevice(scheduler, progress_interval_ms=250),
    )


@pytest.fixture
def session_factory():
    """Return make_session for tests that need custom devices or config."""
    return make_session


@pytest.fixture
def flaky_device_factory():
    """Return a factory for FlakyPollingDevice bound to failing commands."""

    def factory(fail_on=(), error=None):
        return lambda scheduler: FlakyPollingDevice(scheduler, fail_on=fail_on, error=error)

    return factory

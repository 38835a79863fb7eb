"""
chatline.session - Wiring a replay session.

Picks the device at startup, attaches it to a coordinator, and runs
scripted transport steps on a virtual clock.
"""

from __future__ import annotations

import re
from typing import Callable

from chatline.config import ChatlineConfig
from chatline.exceptions import ChatlineError, DeviceError
from chatline.playback.coordinator import PlaybackCoordinator
from chatline.playback.devices import create_device
from chatline.playback.scheduler import ManualScheduler, Scheduler
from chatline.timeline.builder import TimelineCache, total_duration
from chatline.timeline.models import Transcription

STEP_PATTERN = re.compile(r"^(?:(?P<advance>\+\d+)|seek:(?P<seek>-?\d+)|(?P<action>[a-z_]+))$")

ACTIONS: dict[str, Callable[[PlaybackCoordinator], None]] = {
    "play": PlaybackCoordinator.toggle_play_pause,
    "pause": PlaybackCoordinator.toggle_play_pause,
    "toggle": PlaybackCoordinator.toggle_play_pause,
    "rewind": PlaybackCoordinator.rewind,
    "ff": PlaybackCoordinator.fast_forward,
    "fast_forward": PlaybackCoordinator.fast_forward,
    "repeat": PlaybackCoordinator.repeat,
}


class StepError(ChatlineError):
    """Unrecognized scripted step."""

    pass


def create_session(
    transcription: Transcription,
    scheduler: Scheduler,
    config: ChatlineConfig | None = None,
    device_kind: str | None = None,
    cache: TimelineCache | None = None,
    on_error: Callable[[DeviceError], None] | None = None,
) -> PlaybackCoordinator:
    """Build a coordinator with a simulated device and start loading media.

    The media duration equals the timeline's total duration.
    """
    config = config or ChatlineConfig()
    cache = cache if cache is not None else TimelineCache(config.cache_size)
    device = create_device(device_kind or config.device, scheduler, config)
    coordinator = PlaybackCoordinator(
        transcription,
        device,
        scheduler,
        config=config,
        cache=cache,
        on_error=on_error,
    )
    coordinator.load(total_duration(coordinator.timeline))
    return coordinator


def apply_step(coordinator: PlaybackCoordinator, scheduler: ManualScheduler, step: str) -> None:
    """Apply one scripted step.

    Steps: play, pause, toggle, rewind, ff, repeat, seek:<ms>, +<ms>.
    "play" and "pause" only toggle when the state calls for it.
    """
    match = STEP_PATTERN.match(step.strip().lower())
    if not match:
        raise StepError(f"Unrecognized step: {step!r}")

    if match.group("advance"):
        scheduler.advance(int(match.group("advance")[1:]))
        return
    if match.group("seek") is not None:
        coordinator.seek_to(int(match.group("seek")))
        return

    action = match.group("action")
    if action not in ACTIONS:
        raise StepError(f"Unrecognized step: {step!r}")
    if action == "play" and coordinator.state.is_playing:
        return
    if action == "pause" and not coordinator.state.is_playing:
        return
    ACTIONS[action](coordinator)


def run_script(
    transcription: Transcription,
    steps: list[str],
    config: ChatlineConfig | None = None,
    device_kind: str | None = None,
    on_error: Callable[[DeviceError], None] | None = None,
) -> PlaybackCoordinator:
    """Run steps against a fresh session on a virtual clock.

    The media is loaded before the first step. The coordinator is returned
    open so callers can inspect it; close it when done.
    """
    scheduler = ManualScheduler()
    coordinator = create_session(
        transcription,
        scheduler,
        config=config,
        device_kind=device_kind,
        on_error=on_error,
    )
    scheduler.run_pending()

    try:
        for step in steps:
            apply_step(coordinator, scheduler, step)
    except StepError:
        coordinator.close()
        raise
    return coordinator

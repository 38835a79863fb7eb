"""
chatline.playback.devices - Simulated playback devices.

Silent backends that keep a media clock on a Scheduler without decoding
anything. The load() source is the media duration in milliseconds; None
makes loading fail. Selected at startup with create_device().
"""

from __future__ import annotations

from typing import Any

from chatline.config import ChatlineConfig
from chatline.exceptions import ConfigError, DeviceLoadError, DeviceTransportError
from chatline.logging import get_logger
from chatline.playback.device import PlaybackDevice, PollingDevice, PushDevice
from chatline.playback.scheduler import Scheduler, TimerHandle

logger = get_logger(__name__)


class _SimulatedMedia(PlaybackDevice):
    """Rate-aware media clock shared by the simulated devices.

    Position is anchored at the last transport change and extrapolated
    from the scheduler clock while playing.
    """

    def __init__(self, scheduler: Scheduler) -> None:
        super().__init__()
        self.scheduler = scheduler
        self.duration: float = 0
        self.rate: float = 1.0
        self.playing = False
        self.loaded = False
        self.released = False
        self._anchor_position: float = 0
        self._anchor_time: float = scheduler.now()

    def position(self) -> float:
        if not self.playing:
            return self._anchor_position
        elapsed = self.scheduler.now() - self._anchor_time
        return min(max(self._anchor_position + elapsed * self.rate, 0), self.duration)

    def _rebase(self, position: float | None = None) -> None:
        self._anchor_position = self.position() if position is None else position
        self._anchor_time = self.scheduler.now()

    def _require_loaded(self, operation: str) -> None:
        if self.released:
            raise DeviceTransportError("device has been released", operation)
        if not self.loaded:
            raise DeviceTransportError("no media loaded", operation)

    def load(self, source: Any) -> None:
        if self.released:
            raise DeviceLoadError("device has been released", "load")

        def report() -> None:
            if self.listener is None or self.released:
                return
            if source is None:
                self.listener.on_error(DeviceLoadError("no media source", "load"))
                return
            try:
                duration = float(source)
            except (TypeError, ValueError):
                self.listener.on_error(DeviceLoadError(f"unsupported source: {source!r}", "load"))
                return
            if duration < 0:
                self.listener.on_error(DeviceLoadError("negative media duration", "load"))
                return
            self.duration = duration
            self.loaded = True
            self._rebase(0)
            logger.debug("Simulated media loaded (%d ms)", duration)
            self.listener.on_loaded(duration)

        self.scheduler.call_later(0, report)

    def play(self) -> None:
        self._require_loaded("play")
        self._rebase()
        self.playing = True
        self._started()

    def pause(self) -> None:
        self._require_loaded("pause")
        self._rebase()
        self.playing = False
        self._stopped()

    def seek(self, time_ms: float) -> None:
        self._require_loaded("seek")
        self._rebase(min(max(time_ms, 0), self.duration))
        self._seeked()

    def set_rate(self, rate: float) -> None:
        self._require_loaded("set_rate")
        if rate <= 0:
            raise DeviceTransportError(f"invalid rate {rate}", "set_rate")
        self._rebase()
        self.rate = rate

    def release(self) -> None:
        if self.playing:
            self._rebase()
            self.playing = False
        self._stopped()
        self.released = True
        self.listener = None

    def _started(self) -> None:
        pass

    def _stopped(self) -> None:
        pass

    def _seeked(self) -> None:
        pass


class SimulatedPollingDevice(_SimulatedMedia, PollingDevice):
    """Simulated backend for the polling model; never pushes progress."""

    def get_current_time(self) -> float:
        return self.position()


class SimulatedPushDevice(_SimulatedMedia, PushDevice):
    """Simulated backend for the push model.

    Emits on_progress every progress_interval_ms while playing, on_ended at
    the end of media, and confirms every seek with on_seeked.
    """

    confirms_seeks = True

    def __init__(self, scheduler: Scheduler, progress_interval_ms: float = 250) -> None:
        super().__init__(scheduler)
        self.progress_interval_ms = progress_interval_ms
        self._ticker: TimerHandle | None = None

    def _started(self) -> None:
        self._stopped()
        self._ticker = self.scheduler.call_every(self.progress_interval_ms, self._tick)

    def _stopped(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def _tick(self) -> None:
        if self.listener is None:
            return
        position = self.position()
        if position >= self.duration:
            self._rebase(self.duration)
            self.playing = False
            self._stopped()
            self.listener.on_ended()
            return
        self.listener.on_progress(position)

    def _seeked(self) -> None:
        target = self._anchor_position

        def confirm() -> None:
            if self.listener is not None:
                self.listener.on_seeked(target)

        self.scheduler.call_later(0, confirm)


def create_device(
    kind: str,
    scheduler: Scheduler,
    config: ChatlineConfig | None = None,
) -> PlaybackDevice:
    """Create a simulated device by kind ("polling" or "push")."""
    config = config or ChatlineConfig()
    if kind == "polling":
        return SimulatedPollingDevice(scheduler)
    if kind == "push":
        return SimulatedPushDevice(scheduler, progress_interval_ms=config.progress_interval_ms)
    raise ConfigError(f"Unknown device: {kind} (use polling or push)")

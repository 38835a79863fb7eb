"""
chatline.playback.device - Playback device contract.

A device is the media backend the coordinator drives. It either answers
position queries (PollingDevice) or pushes progress events (PushDevice);
which one is attached decides how the coordinator advances time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Protocol


class DeviceListener(Protocol):
    """Callbacks a device reports to. Implemented by PlaybackCoordinator."""

    def on_loaded(self, duration_ms: float) -> None: ...

    def on_progress(self, current_time_ms: float) -> None: ...

    def on_seeked(self, current_time_ms: float) -> None: ...

    def on_ended(self) -> None: ...

    def on_error(self, error: Exception) -> None: ...


class PlaybackDevice(ABC):
    """Transport commands common to every backend.

    Commands may raise DeviceError. load() reports its outcome through the
    attached listener, possibly later.
    """

    pushes_updates: bool = False
    confirms_seeks: bool = False

    def __init__(self) -> None:
        self.listener: DeviceListener | None = None

    def attach(self, listener: DeviceListener) -> None:
        self.listener = listener

    @abstractmethod
    def load(self, source: Any) -> None: ...

    @abstractmethod
    def play(self) -> None: ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def seek(self, time_ms: float) -> None: ...

    @abstractmethod
    def set_rate(self, rate: float) -> None: ...

    @abstractmethod
    def release(self) -> None: ...


class PollingDevice(PlaybackDevice):
    """Device that must be asked for its position."""

    @abstractmethod
    def get_current_time(self) -> float:
        """Current media position in milliseconds."""


class PushDevice(PlaybackDevice):
    """Device that emits on_progress/on_ended itself."""

    pushes_updates = True

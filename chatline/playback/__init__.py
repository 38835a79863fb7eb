"""
chatline.playback - Playback coordination.

Drives a playback device from transport requests and keeps the single
PlaybackState the UI observes:
- PlaybackCoordinator - state machine and derived message views
- PlaybackDevice - device contract (polling or push)
- Scheduler - clock and timers (virtual or asyncio)
"""

from __future__ import annotations

from chatline.playback.coordinator import PlaybackCoordinator
from chatline.playback.device import DeviceListener, PlaybackDevice, PollingDevice, PushDevice
from chatline.playback.devices import SimulatedPollingDevice, SimulatedPushDevice, create_device
from chatline.playback.scheduler import AsyncioScheduler, ManualScheduler, Scheduler, TimerHandle
from chatline.playback.state import PlaybackState

__all__ = [
    "AsyncioScheduler",
    "DeviceListener",
    "ManualScheduler",
    "PlaybackCoordinator",
    "PlaybackDevice",
    "PlaybackState",
    "PollingDevice",
    "PushDevice",
    "Scheduler",
    "SimulatedPollingDevice",
    "SimulatedPushDevice",
    "TimerHandle",
    "create_device",
]

"""
chatline.playback.coordinator - Playback state machine over a device.

PlaybackCoordinator owns the cursor and the playback device. It turns
transport requests (play/pause, seek, rewind, fast-forward, repeat) into
device commands and applies device time updates, polled or pushed, to a
single PlaybackState. Current phrase and visible messages are derived
from that state on demand.

Device failures never escape the public transport methods: they are
logged, passed to the on_error callback, and state reverts to the last
consistent snapshot.
"""

from __future__ import annotations

from typing import Any, Callable

from chatline.config import ChatlineConfig
from chatline.exceptions import DeviceError, DeviceLoadError, DeviceTransportError
from chatline.logging import get_logger
from chatline.playback.device import PlaybackDevice
from chatline.playback.scheduler import Scheduler, TimerHandle
from chatline.playback.state import PlaybackState
from chatline.timeline.builder import TimelineCache, timings_to_messages, total_duration
from chatline.timeline.models import Message, PhraseTiming, Transcription
from chatline.timeline.query import (
    get_current_phrase_index,
    get_visible_messages,
    phrase_at,
    update_message_states,
)

logger = get_logger(__name__)

StateListener = Callable[[PlaybackState, PlaybackState], None]
ErrorCallback = Callable[[DeviceError], None]

NORMAL_RATE = 1.0


class PlaybackCoordinator:
    """Single writer of PlaybackState and exclusive owner of the device.

    Args:
        transcription: Conversation to replay
        device: Playback backend; polled when it does not push updates
        scheduler: Clock and timers for polling and seek settling
        config: Timing parameters (defaults to ChatlineConfig())
        cache: Timeline cache to share between sessions of one owner
        on_error: Called with every DeviceError the coordinator absorbs
    """

    def __init__(
        self,
        transcription: Transcription,
        device: PlaybackDevice,
        scheduler: Scheduler,
        config: ChatlineConfig | None = None,
        cache: TimelineCache | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self.config = config or ChatlineConfig()
        self._cache = cache if cache is not None else TimelineCache(self.config.cache_size)
        self._timeline = self._cache.build(transcription)
        self._messages = timings_to_messages(self._timeline)
        self._device = device
        self._scheduler = scheduler
        self._on_error = on_error

        self._listeners: list[StateListener] = []
        self._state = PlaybackState(total_time=total_duration(self._timeline))
        self._consistent = self._state

        self._poll_handle: TimerHandle | None = None
        self._settle_handle: TimerHandle | None = None
        self._repeat_handle: TimerHandle | None = None
        self._unconfirmed_seeks = 0
        self._alive = True

        device.attach(self)

    # Derived views

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def timeline(self) -> tuple[PhraseTiming, ...]:
        return self._timeline

    @property
    def messages(self) -> tuple[Message, ...]:
        """Every message of the conversation, none flagged current."""
        return self._messages

    @property
    def visible_messages(self) -> tuple[Message, ...]:
        """Messages reached by the cursor, with is_current recomputed."""
        current_time = self._state.current_time
        visible = get_visible_messages(self._messages, current_time)
        return update_message_states(visible, current_time)

    @property
    def current_phrase(self) -> PhraseTiming | None:
        return phrase_at(self._timeline, self._state.current_phrase_index)

    @property
    def total_duration(self) -> int:
        return total_duration(self._timeline)

    @property
    def closed(self) -> bool:
        return not self._alive

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register listener(old, new) for state changes; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Transport

    def load(self, source: Any) -> None:
        """Ask the device to load source; outcome arrives via on_loaded/on_error."""
        if not self._alive:
            return
        try:
            self._call_device("load", self._device.load, source)
        except DeviceError as e:
            self._report(e if isinstance(e, DeviceLoadError) else DeviceLoadError(e.message, "load"))

    def toggle_play_pause(self) -> None:
        if not self._ready("toggle_play_pause"):
            return

        snapshot = self._state
        if snapshot.is_playing:
            try:
                self._call_device("pause", self._device.pause)
            except DeviceError as e:
                self._fail(snapshot, e)
                return
            self._stop_polling()
            self._cancel_repeat_timer()
            self._update(lambda prev: prev.evolve(is_playing=False))
            logger.debug("Paused at %d ms", self._state.current_time)
            return

        if snapshot.current_time >= snapshot.total_time - self.config.end_epsilon_ms:
            logger.debug("At end of media, restarting from 0")
            if not self._seek(0):
                return
            snapshot = self._state

        try:
            self._call_device("play", self._device.play)
        except DeviceError as e:
            self._fail(snapshot, e)
            return
        self._update(lambda prev: prev.evolve(is_playing=True))
        self._start_polling()
        logger.debug("Playing from %d ms", self._state.current_time)

    def seek_to(self, time_ms: float) -> None:
        """Move the cursor to time_ms. Values are passed to the device unclamped."""
        if not self._ready("seek_to"):
            return
        self._seek(time_ms)

    def rewind(self) -> None:
        """Restart the current phrase, or jump to the previous one when near its start."""
        if not self._ready("rewind") or not self._timeline:
            return

        index = self._state.current_phrase_index
        phrase = self._timeline[index]
        target = index
        if self._state.current_time <= phrase.start_time + self.config.rewind_window_ms:
            target = max(0, index - 1)

        logger.debug("Rewind from phrase %d to phrase %d", index, target)
        self._seek(self._timeline[target].start_time)

    def fast_forward(self) -> None:
        """Jump to the start of the next phrase, stopping at the last one."""
        if not self._ready("fast_forward") or not self._timeline:
            return

        index = self._state.current_phrase_index
        target = min(index + 1, len(self._timeline) - 1)
        logger.debug("Fast-forward from phrase %d to phrase %d", index, target)
        self._seek(self._timeline[target].start_time)

    def repeat(self) -> None:
        """Replay the current phrase at the reduced repeat rate.

        Normal rate returns once playback reaches the phrase's end time.
        A paused coordinator records the rate but does not start playing.
        """
        if not self._ready("repeat") or not self._timeline:
            return

        phrase = self._timeline[self._state.current_phrase_index]
        snapshot = self._state
        if not self._seek(phrase.start_time, supersede_repeat=False):
            return

        rate = self.config.repeat_rate
        try:
            self._call_device("set_rate", self._device.set_rate, rate)
        except DeviceError as e:
            self._fail(snapshot, e)
            return

        self._update(lambda prev: prev.evolve(playback_rate=rate, repeat_until=phrase.end_time))
        logger.debug("Repeating %s at %.2fx until %d ms", phrase.id, rate, phrase.end_time)

    def close(self) -> None:
        """Cancel all timers and release the device. Further calls are ignored."""
        if not self._alive:
            return
        self._alive = False
        self._stop_polling()
        self._cancel_settle()
        self._cancel_repeat_timer()
        try:
            self._call_device("release", self._device.release)
        except DeviceError as e:
            logger.warning("Playback device release failed: %s", e)
        self._listeners.clear()

    def __enter__(self) -> PlaybackCoordinator:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # Device listener

    def on_loaded(self, duration_ms: float) -> None:
        if not self._alive:
            return
        logger.debug("Media loaded: %d ms", duration_ms)
        self._update(lambda prev: prev.evolve(is_loaded=True, total_time=duration_ms))

    def on_progress(self, current_time_ms: float) -> None:
        if not self._alive:
            return
        self._apply_time(current_time_ms)

    def on_seeked(self, current_time_ms: float) -> None:
        # Confirmations arrive in request order; only the latest seek settles state.
        if not self._alive or self._unconfirmed_seeks == 0:
            return
        self._unconfirmed_seeks -= 1
        if self._unconfirmed_seeks or not self._state.is_seeking:
            return
        self._cancel_settle()
        self._update(lambda prev: prev.evolve(is_seeking=False, current_time=current_time_ms))

    def on_ended(self) -> None:
        if not self._alive:
            return
        self._handle_end()

    def on_error(self, error: Exception) -> None:
        if not self._alive:
            return
        if not self._state.is_loaded:
            if not isinstance(error, DeviceLoadError):
                error = DeviceLoadError(str(error), "load")
            self._report(error)
            return
        if not isinstance(error, DeviceError):
            error = DeviceTransportError(str(error))
        self._revert(self._consistent)
        self._report(error)

    # Internals

    def _ready(self, operation: str) -> bool:
        if not self._alive:
            return False
        if not self._state.is_loaded:
            logger.debug("Ignoring %s: media not loaded", operation)
            return False
        return True

    def _update(self, transition: Callable[[PlaybackState], PlaybackState]) -> None:
        """Apply transition to the latest state and rederive the phrase index."""
        previous = self._state
        state = transition(previous)
        index = get_current_phrase_index(self._timeline, state.current_time)
        if index != state.current_phrase_index:
            state = state.evolve(current_phrase_index=index)
        if state == previous:
            return

        self._state = state
        if not state.is_seeking:
            self._consistent = state
        for listener in list(self._listeners):
            listener(previous, state)

    def _seek(self, time_ms: float, supersede_repeat: bool = True) -> bool:
        snapshot = self._state
        self._cancel_settle()
        self._cancel_repeat_timer()

        changes: dict[str, Any] = {"current_time": time_ms, "is_seeking": True}
        restore_rate = supersede_repeat and snapshot.repeat_until is not None
        if restore_rate:
            changes["repeat_until"] = None
            changes["playback_rate"] = NORMAL_RATE
        self._update(lambda prev: prev.evolve(**changes))

        try:
            if restore_rate:
                self._call_device("set_rate", self._device.set_rate, NORMAL_RATE)
            self._call_device("seek", self._device.seek, time_ms)
        except DeviceError as e:
            self._fail(snapshot, e)
            return False

        if self._device.confirms_seeks:
            self._unconfirmed_seeks += 1
        else:
            self._settle_handle = self._scheduler.call_later(
                self.config.settle_delay_ms, self._settle
            )
        return True

    def _settle(self) -> None:
        if not self._alive:
            return
        self._settle_handle = None
        self._update(lambda prev: prev.evolve(is_seeking=False))

    def _cancel_settle(self) -> None:
        if self._settle_handle is not None:
            self._settle_handle.cancel()
            self._settle_handle = None

    def _apply_time(self, current_time_ms: float) -> None:
        state = self._state
        if not state.is_loaded or state.is_seeking:
            return

        self._update(lambda prev: prev.evolve(current_time=current_time_ms))

        repeat_until = self._state.repeat_until
        if repeat_until is None:
            return
        if self._state.current_time >= repeat_until:
            self._restore_rate()
        elif self._device.pushes_updates and self._state.is_playing:
            self._arm_repeat_timer()

    def _arm_repeat_timer(self) -> None:
        """Restore the rate when the phrase ends, between pushed progress events."""
        self._cancel_repeat_timer()
        state = self._state
        remaining = (state.repeat_until - state.current_time) / state.playback_rate
        self._repeat_handle = self._scheduler.call_later(remaining, self._finish_repeat)

    def _finish_repeat(self) -> None:
        self._repeat_handle = None
        state = self._state
        if not self._alive or state.repeat_until is None or state.is_seeking or not state.is_playing:
            return
        self._restore_rate()

    def _cancel_repeat_timer(self) -> None:
        if self._repeat_handle is not None:
            self._repeat_handle.cancel()
            self._repeat_handle = None

    def _restore_rate(self) -> None:
        logger.debug("Repeat finished, restoring normal rate")
        self._cancel_repeat_timer()
        self._update(lambda prev: prev.evolve(playback_rate=NORMAL_RATE, repeat_until=None))
        try:
            self._call_device("set_rate", self._device.set_rate, NORMAL_RATE)
        except DeviceError as e:
            self._report(e)

    def _poll(self) -> None:
        if not self._alive:
            return
        try:
            current_time = self._call_device("get_current_time", self._device.get_current_time)
        except DeviceError as e:
            self._report(e)
            return

        total_time = self._state.total_time
        if not self._state.is_seeking and total_time > 0 and current_time >= total_time:
            self._handle_end()
            return
        self._apply_time(current_time)

    def _start_polling(self) -> None:
        if self._device.pushes_updates:
            return
        self._stop_polling()
        self._poll_handle = self._scheduler.call_every(self.config.poll_interval_ms, self._poll)

    def _stop_polling(self) -> None:
        if self._poll_handle is not None:
            self._poll_handle.cancel()
            self._poll_handle = None

    def _handle_end(self) -> None:
        logger.debug("End of media")
        self._stop_polling()
        self._cancel_settle()
        self._cancel_repeat_timer()
        self._unconfirmed_seeks = 0
        rate_changed = self._state.playback_rate != NORMAL_RATE
        self._update(
            lambda prev: prev.evolve(
                is_playing=False,
                current_time=0,
                current_phrase_index=0,
                playback_rate=NORMAL_RATE,
                repeat_until=None,
                is_seeking=False,
            )
        )
        try:
            self._call_device("pause", self._device.pause)
            if rate_changed:
                self._call_device("set_rate", self._device.set_rate, NORMAL_RATE)
            self._call_device("seek", self._device.seek, 0)
        except DeviceError as e:
            self._report(e)

    def _call_device(self, operation: str, method: Callable[..., Any], *args: Any) -> Any:
        try:
            return method(*args)
        except DeviceError:
            raise
        except Exception as e:
            raise DeviceTransportError(str(e), operation) from e

    def _revert(self, snapshot: PlaybackState) -> None:
        self._cancel_settle()
        self._cancel_repeat_timer()
        self._unconfirmed_seeks = 0
        self._update(lambda _: snapshot.evolve(is_seeking=False))
        if self._state.is_playing:
            if self._poll_handle is None:
                self._start_polling()
        else:
            self._stop_polling()

    def _fail(self, snapshot: PlaybackState, error: DeviceError) -> None:
        self._revert(snapshot)
        self._report(error)

    def _report(self, error: DeviceError) -> None:
        logger.warning("Playback device error: %s", error)
        if self._on_error is not None:
            self._on_error(error)

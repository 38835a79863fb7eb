"""
chatline.playback.state - Playback state snapshot.

A frozen record; the coordinator replaces it on every transition.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class PlaybackState(BaseModel):
    """Everything the UI observes about playback.

    repeat_until holds the end time of an active reduced-rate repeat.
    Only PlaybackCoordinator writes it.
    """

    model_config = ConfigDict(frozen=True)

    is_playing: bool = False
    current_time: float = 0
    total_time: float = 0
    is_loaded: bool = False
    playback_rate: float = 1.0
    is_seeking: bool = False
    current_phrase_index: int = 0
    repeat_until: int | None = None

    def evolve(self, **changes) -> PlaybackState:
        """Return a copy with changes applied."""
        return self.model_copy(update=changes)

    @property
    def is_repeating(self) -> bool:
        return self.repeat_until is not None

"""
chatline.timeline.builder - Round-robin timeline construction.

Interleaves speakers by turn index and assigns absolute start/end times
separated by the transcription's uniform pause.
"""

from __future__ import annotations

from collections import OrderedDict

from chatline.logging import get_logger
from chatline.timeline.models import Message, PhraseTiming, Transcription

logger = get_logger(__name__)


def build_timeline(transcription: Transcription) -> tuple[PhraseTiming, ...]:
    """Build the ordered, absolute-timed phrase timeline.

    For each turn index k, speakers are visited in declared order and
    contribute their k-th phrase if they have one. Speakers with fewer
    phrases simply stop contributing once exhausted.

    Args:
        transcription: Validated transcription input

    Returns:
        Tuple of PhraseTiming sorted by start time; empty for no phrases
    """
    speakers = transcription.speakers
    if not speakers:
        return ()

    max_turns = max(len(speaker.phrases) for speaker in speakers)

    timings: list[PhraseTiming] = []
    cursor = 0
    for turn in range(max_turns):
        for speaker_index, speaker in enumerate(speakers):
            if turn >= len(speaker.phrases):
                continue
            phrase = speaker.phrases[turn]
            timings.append(
                PhraseTiming(
                    id=f"phrase_{len(timings) + 1}",
                    speaker=speaker.name,
                    text=phrase.words,
                    start_time=cursor,
                    duration=phrase.time,
                    end_time=cursor + phrase.time,
                    speaker_index=speaker_index,
                    phrase_index=turn,
                )
            )
            cursor += phrase.time + transcription.pause

    return tuple(timings)


def total_duration(timings: tuple[PhraseTiming, ...]) -> int:
    """End time of the last phrase, or 0 for an empty timeline."""
    if not timings:
        return 0
    return timings[-1].end_time


def timings_to_messages(timings: tuple[PhraseTiming, ...]) -> tuple[Message, ...]:
    """Project phrase timings into chat messages (none current)."""
    return tuple(
        Message(
            id=timing.id,
            sender=timing.speaker,
            text=timing.text,
            timestamp=timing.start_time,
            duration=timing.duration,
            end_time=timing.end_time,
            is_current=False,
        )
        for timing in timings
    )


class TimelineCache:
    """LRU cache of built timelines, keyed by transcription content.

    Owned by a session or coordinator; there is no process-wide instance.
    A maxsize of 0 disables caching.
    """

    def __init__(self, maxsize: int = 8) -> None:
        if maxsize < 0:
            raise ValueError("maxsize must be >= 0")
        self.maxsize = maxsize
        self.hits = 0
        self.misses = 0
        self._entries: OrderedDict[str, tuple[PhraseTiming, ...]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def build(self, transcription: Transcription) -> tuple[PhraseTiming, ...]:
        """Return the cached timeline for transcription, building it on a miss."""
        key = transcription.cache_key()
        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            self._entries.move_to_end(key)
            return cached

        self.misses += 1
        timings = build_timeline(transcription)
        logger.debug("Built timeline with %d phrases", len(timings))

        if self.maxsize > 0:
            self._entries[key] = timings
            while len(self._entries) > self.maxsize:
                self._entries.popitem(last=False)
        return timings

    def clear(self) -> None:
        self._entries.clear()

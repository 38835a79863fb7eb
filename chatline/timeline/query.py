"""
chatline.timeline.query - Cursor lookups over a built timeline.

Pure functions: given a timeline (or its messages) and a cursor time,
answer which phrase is current and which messages are visible.
"""

from __future__ import annotations

from bisect import bisect_right

from chatline.timeline.models import Message, PhraseTiming


def get_current_phrase_index(timings: tuple[PhraseTiming, ...], current_time: float) -> int:
    """Index of the phrase playing at current_time.

    Returns i with start_time <= current_time < end_time when such a phrase
    exists. Before the first phrase the index is 0; at or after the last
    phrase's end it is the last index. Inside a pause gap the phrase that
    last started is returned.

    Args:
        timings: Timeline sorted by start time
        current_time: Cursor in milliseconds

    Returns:
        Phrase index (0 for an empty timeline)
    """
    if not timings:
        return 0
    starts = [timing.start_time for timing in timings]
    index = bisect_right(starts, current_time) - 1
    return max(index, 0)


def phrase_at(timings: tuple[PhraseTiming, ...], index: int) -> PhraseTiming | None:
    """Timing at index, or None when out of range."""
    if 0 <= index < len(timings):
        return timings[index]
    return None


def get_visible_messages(messages: tuple[Message, ...], current_time: float) -> tuple[Message, ...]:
    """Messages whose timestamp has been reached, recomputed for every cursor."""
    return tuple(message for message in messages if message.timestamp <= current_time)


def is_current(message: Message, current_time: float) -> bool:
    return message.timestamp <= current_time < message.end_time


def update_message_states(messages: tuple[Message, ...], current_time: float) -> tuple[Message, ...]:
    """Return new messages with is_current recomputed for current_time."""
    updated = []
    for message in messages:
        flag = is_current(message, current_time)
        if flag == message.is_current:
            updated.append(message)
        else:
            updated.append(message.model_copy(update={"is_current": flag}))
    return tuple(updated)

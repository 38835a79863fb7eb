"""
chatline.timeline - Timeline construction and cursor queries.

Builds the globally ordered phrase timeline from a transcription and
answers which phrase is current and which messages are visible.
"""

from __future__ import annotations

from chatline.timeline.builder import (
    TimelineCache,
    build_timeline,
    timings_to_messages,
    total_duration,
)
from chatline.timeline.models import Message, Phrase, PhraseTiming, Speaker, Transcription
from chatline.timeline.query import (
    get_current_phrase_index,
    get_visible_messages,
    phrase_at,
    update_message_states,
)

__all__ = [
    "Message",
    "Phrase",
    "PhraseTiming",
    "Speaker",
    "TimelineCache",
    "Transcription",
    "build_timeline",
    "get_current_phrase_index",
    "get_visible_messages",
    "phrase_at",
    "timings_to_messages",
    "total_duration",
    "update_message_states",
]

"""
Chatline - transcript replay engine for two-speaker conversations.

Turns a per-speaker phrase list into one absolutely timed timeline and
replays it against a playback device as a scrolling chat feed:
transcription → timeline → playback coordinator → visible messages.
"""

__version__ = "0.1.0"

"""
chatline.timeline.models - Transcription input and derived timeline records.

All models are frozen: a transcription is supplied once per session and the
records derived from it are never mutated, only replaced.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Phrase(BaseModel):
    """One utterance: the words spoken and how long they take (ms)."""

    model_config = ConfigDict(frozen=True)

    words: str
    time: int = Field(gt=0)


class Speaker(BaseModel):
    """A participant and their phrases in speaking order."""

    model_config = ConfigDict(frozen=True)

    name: str
    phrases: tuple[Phrase, ...] = ()

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        name = v.strip().lower()
        if not name:
            raise ValueError("speaker name must not be empty")
        return name


class Transcription(BaseModel):
    """Raw conversation input: a uniform pause plus per-speaker phrases."""

    model_config = ConfigDict(frozen=True)

    pause: int = Field(default=0, ge=0)
    speakers: tuple[Speaker, ...] = ()

    def cache_key(self) -> str:
        """Content-derived key; equal transcriptions share a key."""
        return self.model_dump_json()


class PhraseTiming(BaseModel):
    """A phrase placed on the global timeline."""

    model_config = ConfigDict(frozen=True)

    id: str
    speaker: str
    text: str
    start_time: int
    duration: int
    end_time: int
    speaker_index: int
    phrase_index: int


class Message(BaseModel):
    """Display-ready projection of a PhraseTiming."""

    model_config = ConfigDict(frozen=True)

    id: str
    sender: str
    text: str
    timestamp: int
    duration: int
    end_time: int
    is_current: bool = False

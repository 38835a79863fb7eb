"""
chatline.exceptions - Custom exception classes.

All Chatline-specific exceptions inherit from ChatlineError.
"""


class ChatlineError(Exception):
    """Base exception for all Chatline errors."""

    pass


class ConfigError(ChatlineError):
    """Configuration loading or validation error."""

    pass


class TranscriptionError(ChatlineError):
    """Transcription file could not be parsed or validated."""

    pass


class DeviceError(ChatlineError):
    """Playback device rejected a command or failed."""

    def __init__(self, message: str, operation: str | None = None):
        self.message = message
        self.operation = operation
        if operation:
            super().__init__(f"{operation}: {message}")
        else:
            super().__init__(message)


class DeviceLoadError(DeviceError):
    """Playback device could not load media."""

    pass


class DeviceTransportError(DeviceError):
    """Playback device rejected a transport command (play, pause, seek, rate)."""

    pass

"""Terminal-side exceptions for playback and backend communication."""

from typing import Optional


class PlaybackError(Exception):
    """Base exception for local playback problems. Never fatal."""

    pass


class NoActiveMixError(PlaybackError):
    """Raised when asked to play with no mix loaded."""

    def __init__(self, message: str = "No active mix loaded"):
        super().__init__(message)


class MediaLoadError(PlaybackError):
    """Raised when the audio output refuses a source."""

    pass


class BackendError(Exception):
    """Raised when a backend call fails (network, HTTP error, bad payload)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class PersistenceError(BackendError):
    """Raised when a backend write (heartbeat, switch, audit) fails.

    Heartbeat and audit callers log and drop it; the next tick retries.
    """

    pass

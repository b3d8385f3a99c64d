"""Playback domain - the terminal side of Aura.

This domain handles:
- MPV audio output via JSON IPC
- Playback state (active style, mix, volume, progress, auto-mode)
- Progress heartbeats to the backend
- Auto-mode schedule supervision
- The terminal session tying them together
"""

# Audio output
from .player import (
    AudioOutput,
    MpvTransport,
    check_mpv_available,
    get_mpv_property,
    send_mpv_command,
)

# State management
from .state import LocalStateStore, PersistedPlayerState, PlaybackStateMachine

# Backend communication
from .auto_mode import AutoModeSupervisor
from .client import BackendClient
from .heartbeat import HeartbeatClient
from .session import TerminalSession

from .exceptions import (
    BackendError,
    MediaLoadError,
    NoActiveMixError,
    PersistenceError,
    PlaybackError,
)

__all__ = [
    # Player
    "AudioOutput",
    "MpvTransport",
    "check_mpv_available",
    "send_mpv_command",
    "get_mpv_property",
    # State
    "PersistedPlayerState",
    "LocalStateStore",
    "PlaybackStateMachine",
    # Backend
    "BackendClient",
    "HeartbeatClient",
    "AutoModeSupervisor",
    "TerminalSession",
    # Errors
    "PlaybackError",
    "NoActiveMixError",
    "MediaLoadError",
    "BackendError",
    "PersistenceError",
]

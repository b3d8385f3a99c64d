"""
Playback state machine for an Aura terminal.

Tracks the terminal's view of what it is playing (active style, mix, volume,
progress, auto-mode) on top of an AudioOutput. The playing flag follows the
audio output's play/pause events only, so it never claims playback the output
did not actually start.

Volume, style identity, mix and auto-mode survive restarts in a small JSON
file; progress and the playing flag do not (the backend owns resume
positions).
"""

import json
import math
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from aura.core.config import get_data_dir

from .exceptions import MediaLoadError, NoActiveMixError
from .player import AudioOutput


@dataclass
class PersistedPlayerState:
    """The subset of player state kept across restarts."""

    volume: float = 0.7
    current_style_id: Optional[str] = None
    mix_url: Optional[str] = None
    is_auto_mode: bool = False


class LocalStateStore:
    """JSON file holding PersistedPlayerState."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path or get_data_dir() / "player_state.json"

    def load(self) -> PersistedPlayerState:
        if not self.path.exists():
            return PersistedPlayerState()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return PersistedPlayerState(
                volume=max(0.0, min(1.0, float(data.get("volume", 0.7)))),
                current_style_id=data.get("current_style_id"),
                mix_url=data.get("mix_url"),
                is_auto_mode=bool(data.get("is_auto_mode", False)),
            )
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable player state {self.path}: {e}")
            return PersistedPlayerState()

    def save(self, state: PersistedPlayerState) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(".tmp")
            tmp_path.write_text(json.dumps(asdict(state)), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.warning(f"Could not save player state to {self.path}: {e}")


class PlaybackStateMachine:
    """Single owner of playback state on a terminal.

    Methods are called from one event loop; none of them block on the
    network.
    """

    def __init__(self, audio: AudioOutput, store: Optional[LocalStateStore] = None):
        self.audio = audio
        self.store = store

        persisted = store.load() if store else PersistedPlayerState()
        self.volume = persisted.volume
        self.current_style_id = persisted.current_style_id
        self.mix_url = persisted.mix_url
        self.is_auto_mode = persisted.is_auto_mode

        self.is_playing = False
        self.progress = 0
        self._pending_seek: Optional[float] = None

        audio.add_listener("play", self._on_play)
        audio.add_listener("pause", self._on_pause)
        audio.add_listener("timeupdate", self._on_time_update)

    # Audio events

    def _on_play(self) -> None:
        self.is_playing = True

    def _on_pause(self) -> None:
        self.is_playing = False

    def _on_time_update(self) -> None:
        # Until the resume seek lands the output reports the start of the mix
        if self._pending_seek is not None:
            return
        self.progress = math.floor(self.audio.current_time)

    def _apply_pending_seek(self) -> None:
        target = self._pending_seek
        self._pending_seek = None
        if target is not None:
            self.audio.current_time = target

    def _schedule_seek(self, position: float) -> None:
        """Seek to position once the source's metadata is known."""
        self._pending_seek = position
        self.progress = math.floor(position)
        self.audio.add_listener("loadedmetadata", self._apply_pending_seek, once=True)

    # Persistence

    def _persist(self) -> None:
        if self.store is None:
            return
        self.store.save(
            PersistedPlayerState(
                volume=self.volume,
                current_style_id=self.current_style_id,
                mix_url=self.mix_url,
                is_auto_mode=self.is_auto_mode,
            )
        )

    # Commands

    def init_player(
        self, mix_url: str, start_position: float = 0, volume: Optional[float] = None
    ) -> bool:
        """Load a mix paused, seeking to start_position once its metadata is known.

        Any previous source is paused and replaced; a seek still pending for
        it is dropped with it.

        Returns:
            True if the mix was loaded
        """
        self.audio.pause()
        self._pending_seek = None

        if not mix_url:
            logger.error("Cannot initialise player without a mix URL")
            return False

        try:
            self.audio.load(mix_url)
        except MediaLoadError as e:
            logger.error(str(e))
            self.is_playing = False
            return False

        if volume is not None:
            self.volume = max(0.0, min(1.0, float(volume)))
        self.audio.volume = self.volume

        self.mix_url = mix_url
        self.progress = 0
        if start_position and start_position > 0:
            self._schedule_seek(start_position)

        self._persist()
        return True

    def toggle_play(self) -> bool:
        """Pause when playing, play otherwise.

        The playing flag changes only when the output confirms it.

        Returns:
            False if the output refused to play

        Raises:
            NoActiveMixError: If no mix is set
        """
        if not self.mix_url:
            raise NoActiveMixError()

        if self.audio.src != self.mix_url:
            # Source was never loaded or its load failed; reload at progress
            resume_at = self.progress
            try:
                self.audio.load(self.mix_url)
            except MediaLoadError as e:
                logger.error(str(e))
                return False
            self.audio.volume = self.volume
            if resume_at > 0:
                self._schedule_seek(resume_at)

        if self.is_playing:
            return self.audio.pause()

        if not self.audio.play():
            logger.error(f"Playback of {self.mix_url} was rejected")
            return False
        return True

    def set_style(self, style_id: Optional[str], mix_url: Optional[str]) -> None:
        """Record the active style identity. Loads nothing."""
        self.current_style_id = style_id
        self.mix_url = mix_url
        self._persist()

    def set_volume(self, volume: float) -> float:
        self.volume = max(0.0, min(1.0, float(volume)))
        self.audio.volume = self.volume
        self._persist()
        return self.volume

    def set_auto_mode(self, enabled: bool) -> None:
        self.is_auto_mode = bool(enabled)
        self._persist()

    def seek(self, position: float) -> float:
        """Seek to an absolute position, clamped to the mix when its length is known."""
        position = max(0.0, float(position))
        if self.audio.duration:
            position = min(position, self.audio.duration)
        self._pending_seek = None
        self.audio.current_time = position
        self.progress = math.floor(position)
        return position

    def seek_relative(self, delta: float) -> Optional[float]:
        """Move by delta seconds within [0, duration].

        Returns:
            The new position, or None when the mix length is not known yet
        """
        duration = self.audio.duration
        if not duration:
            return None
        target = max(0.0, min(duration, self.audio.current_time + delta))
        self._pending_seek = None
        self.audio.current_time = target
        self.progress = math.floor(target)
        return target

    def stop(self) -> None:
        """Pause and rewind logical progress. The loaded source is kept."""
        self.audio.pause()
        self._pending_seek = None
        self.is_playing = False
        self.progress = 0

    def dispose(self) -> None:
        """Detach from the audio output."""
        self.audio.remove_listener("play", self._on_play)
        self.audio.remove_listener("pause", self._on_pause)
        self.audio.remove_listener("timeupdate", self._on_time_update)
        self.audio.clear_once_listeners()

    def snapshot(self) -> dict:
        return {
            "style_id": self.current_style_id,
            "mix_url": self.mix_url,
            "is_playing": self.is_playing,
            "progress": self.progress,
            "duration": self.audio.duration,
            "volume": round(self.volume * 100),
            "is_auto_mode": self.is_auto_mode,
        }

"""Fakes for the terminal runtime: an in-memory MPV and an in-memory backend."""

import threading
from typing import Any, Optional

import pytest

from aura.core.config import Config
from aura.domain.playback import AudioOutput, PersistenceError
from aura.domain.playback.exceptions import BackendError

LOUNGE = {"id": "lounge", "name": "Lounge", "mix_url": "https://cdn.example/lounge.mp3"}
JAZZ = {"id": "jazz", "name": "Jazz", "mix_url": "https://cdn.example/jazz.mp3"}
TECHNO = {"id": "techno", "name": "Techno", "mix_url": None}


class FakeMpvTransport:
    """Answers IPC commands the way MPV would, without a process."""

    def __init__(self) -> None:
        self.running = False
        self.commands: list[tuple] = []
        self.properties: dict[str, Any] = {"pause": True}
        self.reject_play = False
        self.reject_load = False

    def start(self) -> bool:
        self.running = True
        return True

    def stop(self) -> None:
        self.running = False

    def is_running(self) -> bool:
        return self.running

    def command(self, *args: Any) -> bool:
        self.commands.append(args)
        if args == ("set_property", "pause", False) and self.reject_play:
            return False
        if args[0] == "loadfile":
            if self.reject_load:
                return False
            self.properties.update({"path": args[1], "time-pos": 0.0, "duration": None})
        elif args[0] == "set_property":
            self.properties[args[1]] = args[2]
        elif args[0] == "seek":
            self.properties["time-pos"] = float(args[1])
        return True

    def get_property(self, name: str) -> Any:
        return self.properties.get(name)

    # Test helpers

    def metadata_arrives(self, duration: float = 3600.0) -> None:
        self.properties["duration"] = duration

    def loaded(self) -> list[str]:
        return [c[1] for c in self.commands if c[0] == "loadfile"]

    def seeks(self) -> list[float]:
        return [c[1] for c in self.commands if c[0] == "seek"]


class FakeBackend:
    """BackendClient stand-in keeping terminal state in memory."""

    def __init__(self, terminal: Optional[dict] = None, styles: Optional[list] = None):
        self.terminal_id = "T1"
        self.terminal = terminal or {
            "id": "T1",
            "volume": 70,
            "is_auto_mode": False,
            "style": None,
        }
        self.styles = styles if styles is not None else [LOUNGE, JAZZ, TECHNO]
        self.positions: dict[str, int] = {}
        self.favorites: list[str] = []
        self.program: Optional[dict] = None
        self.calls: list[tuple] = []
        self.down = False
        self.fail_change_style = False
        self.block = threading.Event()
        self.block.set()
        self.closed = False

    def _check(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if self.down:
            raise BackendError(f"{name}: connection refused")

    def calls_named(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]

    def get_terminal(self) -> dict:
        self._check("get_terminal")
        return self.terminal

    def update_terminal(self, **fields: Any) -> dict:
        self._check("update_terminal", fields)
        self.terminal.update(fields)
        return self.terminal

    def list_styles(self) -> list:
        self._check("list_styles")
        return self.styles

    def current_program(self, at: Optional[str] = None) -> Optional[dict]:
        self._check("current_program")
        return self.program

    def get_position(self, style_id: str) -> int:
        self._check("get_position", style_id)
        return self.positions.get(style_id, 0)

    def save_position(self, position: int, is_playing: bool) -> dict:
        self._check("save_position", position, is_playing)
        self.block.wait(timeout=5)
        style = self.terminal.get("style")
        if style is None:
            raise PersistenceError("no active style", status_code=400)
        self.positions[style["id"]] = position
        return {"success": True}

    def change_style(self, style_id: str) -> dict:
        self._check("change_style", style_id)
        if self.fail_change_style:
            raise PersistenceError("change-style returned 500", status_code=500)
        style = next(s for s in self.styles if s["id"] == style_id)
        self.terminal["style"] = style
        return {
            "terminal": self.terminal,
            "style": style,
            "resume_position": self.positions.get(style_id, 0),
        }

    def get_favorites(self) -> list:
        self._check("get_favorites")
        return [next(s for s in self.styles if s["id"] == i) for i in self.favorites]

    def toggle_favorite(self, style_id: str) -> bool:
        self._check("toggle_favorite", style_id)
        if style_id in self.favorites:
            self.favorites.remove(style_id)
            return False
        self.favorites.insert(0, style_id)
        return True

    def log_activity(self, action: str, details: Optional[dict] = None) -> None:
        self._check("log_activity", action, details)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def transport() -> FakeMpvTransport:
    return FakeMpvTransport()


@pytest.fixture
def audio(transport) -> AudioOutput:
    output = AudioOutput(transport)
    output.open()
    return output


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def quiet_config() -> Config:
    """Config whose background loops stay out of the way of a test."""
    config = Config()
    config.terminal.terminal_id = "T1"
    config.player.heartbeat_interval_seconds = 3600
    config.player.program_poll_interval_seconds = 3600
    config.player.status_poll_interval_seconds = 3600
    return config


@pytest.fixture
def styles() -> dict[str, dict]:
    return {s["id"]: s for s in (LOUNGE, JAZZ, TECHNO)}

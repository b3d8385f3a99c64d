"""
MPV-backed audio output for Aura terminals.

MPV runs as a child process controlled over its JSON IPC socket. AudioOutput
wraps it with a small media-element style API: a source, a current time, a
volume in [0, 1], play/pause, and events (play, pause, timeupdate,
loadedmetadata) that the playback state machine listens to.
"""

import json
import os
import socket
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Optional

from loguru import logger

from .exceptions import MediaLoadError

EVENTS = ("play", "pause", "timeupdate", "loadedmetadata")

Listener = Callable[[], None]


def check_mpv_available() -> bool:
    """Check if MPV is available on the system."""
    try:
        result = subprocess.run(
            ["mpv", "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


def _ipc_request(socket_path: Optional[str], command: list[Any]) -> Optional[dict]:
    """Send one JSON IPC command to MPV and return the decoded reply."""
    if not socket_path or not os.path.exists(socket_path):
        return None

    try:
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
            sock.settimeout(2.0)
            sock.connect(socket_path)

            sock.send((json.dumps({"command": command}) + "\n").encode("utf-8"))

            # MPV may interleave event lines; the reply is the line with "error"
            response = sock.recv(4096).decode("utf-8").strip()
    except (socket.error, OSError):
        return None

    for line in response.splitlines():
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            continue
        if "error" in data:
            return data
    return None


def send_mpv_command(socket_path: Optional[str], command: list[Any]) -> bool:
    """Send a command to MPV. True when MPV acknowledged it."""
    reply = _ipc_request(socket_path, command)
    return reply is not None and reply.get("error") == "success"


def get_mpv_property(socket_path: Optional[str], property_name: str) -> Any:
    """Get a property value from MPV, None when unavailable."""
    reply = _ipc_request(socket_path, ["get_property", property_name])
    if reply is not None and reply.get("error") == "success":
        return reply.get("data")
    return None


class MpvTransport:
    """Owns the MPV process and its IPC socket."""

    def __init__(self, socket_path: Optional[str] = None, volume: int = 70):
        if socket_path is None:
            socket_path = str(Path(tempfile.gettempdir()) / f"aura-mpv-{os.getpid()}")
        self.socket_path = socket_path
        self.initial_volume = volume
        self.process: Optional[subprocess.Popen] = None

    def start(self) -> bool:
        """Start MPV idle with JSON IPC. False when it could not be started."""
        logger.info(f"Starting MPV player with socket: {self.socket_path}")

        try:
            if os.path.exists(self.socket_path):
                logger.debug(f"Removing existing socket: {self.socket_path}")
                os.unlink(self.socket_path)

            cmd = [
                "mpv",
                "--idle=yes",
                "--no-video",
                "--no-terminal",
                f"--input-ipc-server={self.socket_path}",
                f"--volume={self.initial_volume}",
                "--keep-open=yes",
                "--load-scripts=no",
            ]
            self.process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
            )

            timeout = 5.0
            start_time = time.time()
            while not os.path.exists(self.socket_path):
                if time.time() - start_time > timeout:
                    logger.error(f"MPV socket creation timeout after {timeout}s")
                    self.process.kill()
                    self.process = None
                    return False
                time.sleep(0.1)

            if self.get_property("idle-active") is None:
                logger.error("MPV socket connection test failed")
                self.process.kill()
                self.process = None
                return False

            logger.info("MPV started successfully")
            return True

        except (subprocess.SubprocessError, OSError) as e:
            logger.error(f"Failed to start MPV: {e}")
            self.process = None
            return False

    def stop(self) -> None:
        """Stop the MPV process and remove its socket."""
        if self.process:
            try:
                self.process.kill()
                self.process.wait(timeout=2.0)
            except (OSError, subprocess.TimeoutExpired):
                pass  # already gone
            self.process = None

        if os.path.exists(self.socket_path):
            try:
                os.unlink(self.socket_path)
            except OSError:
                pass

    def is_running(self) -> bool:
        if not self.process or self.process.poll() is not None:
            return False
        return os.path.exists(self.socket_path)

    def command(self, *args: Any) -> bool:
        return send_mpv_command(self.socket_path, list(args))

    def get_property(self, name: str) -> Any:
        return get_mpv_property(self.socket_path, name)


class AudioOutput:
    """Media-element style facade over an MPV transport.

    Events are emitted on successful commands and, for changes MPV makes on
    its own (end of buffer, external pause), on the next poll(). Listener
    errors are logged and never break the emitter.
    """

    def __init__(self, transport: Any):
        self.transport = transport
        self.src: Optional[str] = None
        self._paused = True
        self._time = 0.0
        self._duration: Optional[float] = None
        self._volume = 1.0
        self._metadata_loaded = False
        self._listeners: dict[str, list[Listener]] = {event: [] for event in EVENTS}
        self._once: dict[str, list[Listener]] = {event: [] for event in EVENTS}

    # Lifecycle

    def open(self) -> bool:
        if self.transport.is_running():
            return True
        return self.transport.start()

    def close(self) -> None:
        self.transport.stop()
        self.src = None
        self._paused = True

    # Listeners

    def add_listener(self, event: str, callback: Listener, once: bool = False) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown audio event: {event}")
        (self._once if once else self._listeners)[event].append(callback)

    def remove_listener(self, event: str, callback: Listener) -> None:
        for registry in (self._listeners, self._once):
            if callback in registry.get(event, []):
                registry[event].remove(callback)

    def clear_once_listeners(self) -> None:
        for event in EVENTS:
            self._once[event].clear()

    def _emit(self, event: str) -> None:
        once = self._once[event]
        self._once[event] = []
        for callback in list(self._listeners[event]) + once:
            try:
                callback()
            except Exception:
                logger.exception(f"Audio '{event}' listener failed")

    # Properties

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def duration(self) -> Optional[float]:
        return self._duration

    @property
    def metadata_loaded(self) -> bool:
        return self._metadata_loaded

    @property
    def current_time(self) -> float:
        return self._time

    @current_time.setter
    def current_time(self, seconds: float) -> None:
        seconds = max(0.0, float(seconds))
        if self.transport.command("seek", seconds, "absolute"):
            self._time = seconds
            self._emit("timeupdate")
        else:
            logger.warning(f"Seek to {seconds:.1f}s was rejected")

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        value = max(0.0, min(1.0, float(value)))
        if self.transport.command("set_property", "volume", round(value * 100)):
            self._volume = value
        else:
            logger.warning(f"Setting volume to {value:.2f} was rejected")

    # Commands

    def load(self, url: str) -> bool:
        """Replace the current source, paused at the start.

        Raises:
            MediaLoadError: If MPV refused the source

        Pending one-shot listeners belong to the previous source and are
        dropped.
        """
        self.clear_once_listeners()
        self._metadata_loaded = False
        self._duration = None
        self._time = 0.0

        self.transport.command("set_property", "pause", True)
        if not self.transport.command("loadfile", url, "replace"):
            self.src = None
            raise MediaLoadError(f"MPV refused to load {url}")

        self.transport.command("set_property", "loop-file", "inf")
        self.src = url
        if not self._paused:
            self._paused = True
            self._emit("pause")
        logger.info(f"Loaded mix {url}")
        return True

    def play(self) -> bool:
        """Start playback. False when MPV rejected it or nothing is loaded."""
        if not self.src:
            return False
        if not self.transport.command("set_property", "pause", False):
            logger.warning("MPV rejected play")
            return False
        if self._paused:
            self._paused = False
            self._emit("play")
        return True

    def pause(self) -> bool:
        if not self.transport.command("set_property", "pause", True):
            return False
        if not self._paused:
            self._paused = True
            self._emit("pause")
        return True

    def poll(self) -> None:
        """Pull MPV's state and emit events for whatever changed."""
        if not self.src:
            return

        duration = self.transport.get_property("duration")
        if duration and not self._metadata_loaded:
            self._duration = float(duration)
            self._metadata_loaded = True
            self._emit("loadedmetadata")

        paused = self.transport.get_property("pause")
        if paused is not None and bool(paused) != self._paused:
            self._paused = bool(paused)
            self._emit("pause" if self._paused else "play")

        position = self.transport.get_property("time-pos")
        if position is not None and float(position) != self._time:
            self._time = float(position)
            self._emit("timeupdate")

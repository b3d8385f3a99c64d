"""
Terminal session: everything one running terminal owns.

Wires the audio output, playback state machine, heartbeat client and
auto-mode supervisor to one backend client, and implements the flows that
span them: cold start, user and scheduled style switches, play/pause with
audit events, and orderly shutdown.
"""

import asyncio
from contextlib import suppress
from typing import Any, Optional

from loguru import logger

from aura.core.config import Config

from .auto_mode import AutoModeSupervisor
from .client import BackendClient
from .exceptions import BackendError, NoActiveMixError
from .heartbeat import HeartbeatClient
from .player import AudioOutput, MpvTransport
from .state import LocalStateStore, PlaybackStateMachine


class TerminalSession:
    def __init__(
        self,
        config: Config,
        client: Optional[BackendClient] = None,
        audio: Optional[AudioOutput] = None,
        store: Optional[LocalStateStore] = None,
    ):
        self.config = config
        self.client = client or BackendClient(
            config.terminal.server_url,
            config.terminal.terminal_id,
            timeout=config.terminal.request_timeout_seconds,
        )
        self.audio = audio or AudioOutput(
            MpvTransport(
                socket_path=config.player.mpv_socket_path,
                volume=config.player.volume,
            )
        )
        self.machine = PlaybackStateMachine(self.audio, store)
        self.heartbeat = HeartbeatClient(
            self.machine, self.client, config.player.heartbeat_interval_seconds
        )
        self.supervisor = AutoModeSupervisor(
            self.machine,
            self.client,
            self._switch_to_scheduled,
            config.player.program_poll_interval_seconds,
        )

        self.style_name: Optional[str] = None
        self.backend_available = False
        self._switch_lock = asyncio.Lock()
        self._poll_task: Optional[asyncio.Task] = None
        self._background: set[asyncio.Task] = set()

    # Lifecycle

    async def start(self) -> bool:
        """Open the audio output, restore state and start background loops.

        Returns:
            False if the audio output could not be opened
        """
        if not self.audio.open():
            logger.error("Audio output unavailable, terminal not started")
            return False

        await self._cold_start()

        self._poll_task = asyncio.create_task(self._poll_audio())
        self.heartbeat.start()
        if self.machine.is_auto_mode:
            self.supervisor.start()
        return True

    async def _cold_start(self) -> None:
        """Restore from the backend, falling back to local state when it is down."""
        try:
            terminal = await asyncio.to_thread(self.client.get_terminal)
        except BackendError as e:
            logger.warning(f"Backend unreachable, resuming from local state: {e}")
            if self.machine.mix_url:
                self.machine.init_player(self.machine.mix_url, 0)
        else:
            self.backend_available = True
            self.machine.set_auto_mode(bool(terminal.get("is_auto_mode")))
            volume = terminal.get("volume", self.config.player.volume) / 100
            style = terminal.get("style")

            if style and style.get("mix_url"):
                position = await self._fetch_position(style["id"])
                self.machine.set_style(style["id"], style["mix_url"])
                self.style_name = style.get("name")
                self.machine.init_player(style["mix_url"], position, volume)
            else:
                self.machine.set_style(None, None)
                self.machine.set_volume(volume)
                logger.info("Terminal has no playable style yet")

        if self.config.player.autoplay_on_start and self.machine.mix_url:
            self._play_quietly()

    async def _fetch_position(self, style_id: str) -> int:
        try:
            return await asyncio.to_thread(self.client.get_position, style_id)
        except BackendError as e:
            logger.warning(f"No resume position for style {style_id}: {e}")
            return 0

    async def _poll_audio(self) -> None:
        while True:
            self.audio.poll()
            await asyncio.sleep(self.config.player.status_poll_interval_seconds)

    async def shutdown(self) -> None:
        """Stop every loop, report a final paused heartbeat and close the output."""
        await self.supervisor.stop()
        await self.heartbeat.stop()

        if self._poll_task is not None:
            self._poll_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._poll_task
            self._poll_task = None

        position = self.machine.progress
        had_style = self.machine.current_style_id is not None
        self.machine.stop()
        if had_style:
            try:
                await asyncio.to_thread(self.client.save_position, position, False)
            except BackendError as e:
                logger.warning(f"Final position not saved: {e}")

        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

        self.machine.dispose()
        self.audio.close()
        self.client.close()
        logger.info("Terminal session closed")

    # Playback

    def _play_quietly(self) -> None:
        try:
            if not self.machine.is_playing:
                self.machine.toggle_play()
        except NoActiveMixError:
            logger.warning("Nothing to play")

    def toggle_play(self) -> bool:
        """User play/pause. Reports PLAY or PAUSE when the output obeyed."""
        was_playing = self.machine.is_playing
        try:
            ok = self.machine.toggle_play()
        except NoActiveMixError:
            logger.warning("Play requested with no active mix")
            return False

        if ok:
            self._report(
                "PAUSE" if was_playing else "PLAY",
                {
                    "style_id": self.machine.current_style_id,
                    "position": self.machine.progress,
                },
            )
        return ok

    def set_volume(self, percent: int) -> int:
        volume = self.machine.set_volume(percent / 100)
        percent = round(volume * 100)
        self._spawn(self._update_terminal(volume=percent))
        return percent

    def seek_relative(self, delta: float) -> Optional[float]:
        return self.machine.seek_relative(delta)

    async def set_auto_mode(self, enabled: bool) -> None:
        self.machine.set_auto_mode(enabled)
        self._spawn(self._update_terminal(is_auto_mode=enabled))
        if enabled:
            self.supervisor.start()
        else:
            await self.supervisor.stop()

    # Style picker

    async def list_styles(self) -> list[dict[str, Any]]:
        """Catalog for the style picker, favorites first.

        Favorites keep their most-recently-added order, the rest keep the
        catalog order. Each style carries an "is_favorite" flag.

        Raises:
            BackendError: If the catalog could not be fetched
        """
        styles = await asyncio.to_thread(self.client.list_styles)
        try:
            favorites = await asyncio.to_thread(self.client.get_favorites)
        except BackendError as e:
            logger.warning(f"Favorites unavailable: {e}")
            favorites = []

        rank = {s["id"]: i for i, s in enumerate(favorites)}
        listed = [{**s, "is_favorite": s["id"] in rank} for s in styles]
        return sorted(listed, key=lambda s: rank.get(s["id"], len(rank)))

    async def toggle_favorite(self, style_id: str) -> Optional[bool]:
        """Flip a style in this terminal's favorites. None when the backend refused."""
        try:
            return await asyncio.to_thread(self.client.toggle_favorite, style_id)
        except BackendError as e:
            logger.warning(f"Favorite for style {style_id} not saved: {e}")
            return None

    # Style switching

    async def select_style(self, style_id: str) -> bool:
        """User-initiated switch. Resumes the style where this terminal left it."""
        try:
            styles = await asyncio.to_thread(self.client.list_styles)
        except BackendError as e:
            logger.error(f"Cannot list styles: {e}")
            return False

        style = next((s for s in styles if s["id"] == style_id), None)
        if style is None:
            logger.warning(f"Unknown style {style_id}")
            return False
        if not style.get("mix_url"):
            logger.warning(f"Style {style_id} has no mix yet")
            return False

        return await self.switch_style(style, trigger="manual")

    async def _switch_to_scheduled(self, style: dict[str, Any]) -> bool:
        return await self.switch_style(style, trigger="schedule", from_start=True)

    async def switch_style(
        self, style: dict[str, Any], trigger: str = "manual", from_start: bool = False
    ) -> bool:
        """Move playback to another style.

        Order matters: the new identity is recorded and the old source
        stopped. Heartbeats still outstanding for the old style are drained,
        then its position is saved while the backend still has it active.
        Only then does the backend switch, the new mix load and playback
        resume. Only one switch runs at a time.

        Returns:
            True if the terminal now plays the new style
        """
        async with self._switch_lock:
            previous_id = self.machine.current_style_id
            if previous_id == style["id"]:
                return True

            previous_mix = self.machine.mix_url
            previous_name = self.style_name
            previous_position = self.machine.progress
            was_playing = self.machine.is_playing

            self.machine.set_style(style["id"], style["mix_url"])
            self.machine.stop()
            await self.heartbeat.flush()

            if previous_id is not None:
                try:
                    await asyncio.to_thread(
                        self.client.save_position, previous_position, False
                    )
                except BackendError as e:
                    logger.warning(f"Position of style {previous_id} not saved: {e}")

            try:
                change = await asyncio.to_thread(self.client.change_style, style["id"])
            except BackendError as e:
                logger.error(f"Switch to style {style['id']} failed: {e}")
                self._restore(previous_id, previous_mix, previous_position, was_playing)
                return False

            resume_at = 0 if from_start else int(change.get("resume_position", 0))
            if not self.machine.init_player(style["mix_url"], resume_at):
                return False

            self.style_name = style.get("name")
            self._play_quietly()

            self._report(
                "CHANGE_STYLE",
                {
                    "from_style_id": previous_id,
                    "from_style_name": previous_name,
                    "to_style_id": style["id"],
                    "to_style_name": style.get("name"),
                    "trigger": trigger,
                },
            )
            logger.info(f"Switched to style {style['id']} at {resume_at}s ({trigger})")
            return True

    def _restore(
        self,
        style_id: Optional[str],
        mix_url: Optional[str],
        position: int,
        was_playing: bool,
    ) -> None:
        self.machine.set_style(style_id, mix_url)
        if mix_url and self.machine.init_player(mix_url, position) and was_playing:
            self._play_quietly()

    # Background reporting

    def _spawn(self, coro: Any) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _report(self, action: str, details: dict[str, Any]) -> None:
        self._spawn(self._log_activity(action, details))

    async def _log_activity(self, action: str, details: dict[str, Any]) -> None:
        try:
            await asyncio.to_thread(self.client.log_activity, action, details)
        except BackendError as e:
            logger.warning(f"{action} activity not reported: {e}")

    async def _update_terminal(self, **fields: Any) -> None:
        try:
            await asyncio.to_thread(self.client.update_terminal, **fields)
        except BackendError as e:
            logger.warning(f"Terminal settings not saved: {e}")

    def status(self) -> dict[str, Any]:
        snapshot = self.machine.snapshot()
        snapshot["style_name"] = self.style_name
        snapshot["auto_supervisor"] = self.supervisor.is_running
        snapshot["backend_available"] = self.backend_available
        snapshot["heartbeats_sent"] = self.heartbeat.sent
        snapshot["heartbeat_failures"] = self.heartbeat.failures
        return snapshot

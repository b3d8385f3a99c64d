"""
Periodic progress heartbeats from a terminal to the backend.

While the terminal is playing, every interval the current progress is sent
to the backend, which saves the resume position and credits today's play
session. At most one request is in flight; while it is outstanding only the
newest heartbeat is kept, older ones are dropped. Failures are logged and the
next tick simply tries again.
"""

import asyncio
from contextlib import suppress
from typing import Optional

from loguru import logger

from .client import BackendClient
from .exceptions import BackendError
from .state import PlaybackStateMachine


class HeartbeatClient:
    def __init__(
        self,
        machine: PlaybackStateMachine,
        client: BackendClient,
        interval: float = 10.0,
    ):
        self.machine = machine
        self.client = client
        self.interval = interval

        self.sent = 0
        self.failures = 0
        self.dropped = 0

        self._task: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Task] = None
        self._pending: Optional[tuple[int, bool]] = None
        self._stopped = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._stopped = False
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Cancel the timer and wait for the outstanding request.

        A request already handed to the HTTP thread cannot be recalled, so it
        is awaited rather than cancelled; anything written after it then
        lands last.
        """
        self._stopped = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        await self.flush()

    async def flush(self) -> None:
        """Drop the queued heartbeat and wait for the one in flight."""
        if self._pending is not None:
            self.dropped += 1
            self._pending = None
        while self._in_flight is not None and not self._in_flight.done():
            await asyncio.wait({self._in_flight})
        self._in_flight = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.tick()

    def tick(self) -> bool:
        """Queue a heartbeat if playing. True when one was queued."""
        if not self.machine.is_playing:
            return False
        self.submit(self.machine.progress, True)
        return True

    def submit(self, position: int, is_playing: bool) -> None:
        if self._stopped:
            return
        payload = (int(position), bool(is_playing))

        if self._in_flight is not None and not self._in_flight.done():
            if self._pending is not None:
                self.dropped += 1
            self._pending = payload
            return

        self._in_flight = asyncio.create_task(self._send(payload))

    async def _send(self, payload: tuple[int, bool]) -> None:
        position, is_playing = payload
        try:
            await asyncio.to_thread(self.client.save_position, position, is_playing)
            self.sent += 1
        except BackendError as e:
            self.failures += 1
            logger.warning(f"Heartbeat at {position}s failed: {e}")

        next_payload, self._pending = self._pending, None
        if next_payload is not None and not self._stopped:
            self._in_flight = asyncio.create_task(self._send(next_payload))

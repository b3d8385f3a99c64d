"""
Auto-mode supervisor: keeps a terminal on its scheduled program.

While auto-mode is on and a style is active, the supervisor asks the backend
which style is scheduled now (immediately on start, then every interval) and
switches when it differs from the active one. Once stopped it makes no
further resolver calls and triggers no switches.
"""

import asyncio
from contextlib import suppress
from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from .client import BackendClient
from .exceptions import BackendError
from .state import PlaybackStateMachine

SwitchCallback = Callable[[dict[str, Any]], Awaitable[bool]]


class AutoModeSupervisor:
    def __init__(
        self,
        machine: PlaybackStateMachine,
        client: BackendClient,
        switch_style: SwitchCallback,
        interval: float = 30.0,
    ):
        self.machine = machine
        self.client = client
        self.switch_style = switch_style
        self.interval = interval

        self.checks = 0
        self.switches = 0

        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start supervising. The first check runs right away."""
        if self.is_running:
            return
        self._stopped = False
        self._task = asyncio.create_task(self._run())
        logger.info("Auto-mode supervisor started")

    async def stop(self) -> None:
        self._stopped = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
        if self._task is not None:
            logger.info("Auto-mode supervisor stopped")
        self._task = None

    async def _run(self) -> None:
        while not self._stopped:
            await self.check_program()
            await asyncio.sleep(self.interval)

    async def check_program(self) -> bool:
        """Resolve the scheduled style and switch to it if needed.

        Returns:
            True if a switch happened
        """
        if self._stopped or not self.machine.is_auto_mode:
            return False
        if self.machine.current_style_id is None:
            return False

        self.checks += 1
        try:
            style = await asyncio.to_thread(self.client.current_program)
        except BackendError as e:
            logger.warning(f"Could not resolve current program: {e}")
            return False

        # Stopped while the request was outstanding
        if self._stopped or not self.machine.is_auto_mode:
            return False

        if style is None or style["id"] == self.machine.current_style_id:
            return False

        if not style.get("mix_url"):
            logger.warning(f"Scheduled style {style['id']} has no mix, staying put")
            return False

        logger.info(
            f"Schedule wants style {style['id']}, "
            f"switching from {self.machine.current_style_id}"
        )
        # A switch that has started runs to completion even if we are stopped
        switched = await asyncio.shield(self.switch_style(style))
        if switched:
            self.switches += 1
        return switched

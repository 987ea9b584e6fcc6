"""Single-flight gate for incremental snapshot saves."""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class GateState(str, Enum):
    IDLE = "idle"
    SAVING = "saving"


class SaveGate:
    """Coalesce save requests so at most one save runs and at most one waits.

    ``save`` is called with no arguments and must read the current state
    itself, so a deferred save always persists the newest data. Requests
    made while a save is in flight collapse into a single pending save,
    which starts after ``cooldown`` seconds. Save failures are logged and
    dropped.
    """

    def __init__(
        self,
        save: Callable[[], Awaitable[None]],
        cooldown: float = 0.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._save = save
        self._cooldown = cooldown
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        # Capacity-1 slot: a second request while one is pending replaces nothing.
        self._pending = asyncio.Queue(maxsize=1)
        self.writes = 0

    @property
    def state(self) -> GateState:
        if self._task is not None and not self._task.done():
            return GateState.SAVING
        return GateState.IDLE

    @property
    def pending(self) -> bool:
        return self._pending.full()

    def request(self) -> None:
        """Ask for a save without waiting for it."""
        if self.state is GateState.SAVING:
            if not self._pending.full():
                self._pending.put_nowait(None)
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def drain(self) -> None:
        """Wait until no save is running or pending."""
        while self._task is not None and not self._task.done():
            await self._task

    async def _run(self) -> None:
        while True:
            try:
                await self._save()
                self.writes += 1
                logger.debug("Incremental save succeeded")
            except Exception as e:
                logger.warning(f"Incremental save failed (ignored): {e}")

            if self._pending.empty():
                return
            # The slot stays full through the cooldown so late requests fold into it.
            await self._sleep(self._cooldown)
            self._pending.get_nowait()

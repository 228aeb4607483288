"""
services/countdown.py

Background countdown driving an attempt's `tick`.

Runs as an asyncio task on the server's event loop. Each interval it calls
on_tick exactly once (no catch-up for late wake-ups) and stops on its own as
soon as is_active() turns False. cancel() is the teardown handle.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Countdown:

    def __init__(
        self,
        on_tick: Callable[[], None],
        is_active: Callable[[], bool],
        interval: float = 1.0,
    ):
        self.interval = interval
        self._on_tick = on_tick
        self._is_active = is_active
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        """Schedule the countdown on the running event loop."""
        if self.running:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run())

    async def _run(self) -> None:
        while self._is_active():
            await asyncio.sleep(self.interval)
            if not self._is_active():
                break
            try:
                self._on_tick()
            except Exception as e:
                logger.error(f"countdown tick failed: {type(e).__name__}: {e}")
                break
        logger.debug("countdown finished")

    def cancel(self) -> None:
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        # cancel() may be called from inside the tick itself (forced submission)
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

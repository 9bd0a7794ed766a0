"""
Shared Session Timer
====================

One elapsed-seconds counter per session with a running/stopped state machine.

States:
    Stopped(seconds) --start--> Running(seconds)
    Running(seconds) --stop---> Stopped(seconds)
    either           --reset--> same state, seconds = 0
    Running(seconds) --tick---> Running(seconds + 1)

While running, a single named ``asyncio.Task`` fires ``on_tick`` once per
interval. ``start`` and ``stop`` look at ``running``, never at the task handle,
so duplicate requests are no-ops.
"""

import asyncio
import logging
import math
from typing import Callable, Optional

logger = logging.getLogger("relay.realtime.timer")


def format_elapsed(total_seconds: int) -> str:
    """
    Format a second count as zero-padded HH:MM:SS.

    Example:
        >>> format_elapsed(3725)
        '01:02:05'
    """
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


class SessionTimer:
    """
    Shared stopwatch driven by the event loop.

    Args:
        on_tick: Called with no arguments after every increment
        interval: Seconds between ticks
    """

    def __init__(self, on_tick: Callable[[], None], interval: float = 1.0):
        self._on_tick = on_tick
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self.running = False
        self.elapsed_seconds = 0

    @property
    def formatted(self) -> str:
        return format_elapsed(self.elapsed_seconds)

    def start(self) -> bool:
        """
        Begin ticking.

        Returns:
            bool: True if the timer transitioned, False if it was already running
        """
        if self.running:
            return False

        self.running = True
        self._task = asyncio.get_running_loop().create_task(
            self._tick_forever(), name="session-timer-tick"
        )
        logger.info("Timer started", extra={"elapsed_seconds": self.elapsed_seconds})
        return True

    def stop(self) -> bool:
        """
        Stop ticking, keeping the elapsed count.

        Returns:
            bool: True if the timer transitioned, False if it was already stopped
        """
        if not self.running:
            return False

        self.running = False
        if self._task is not None:
            self._task.cancel()
            self._task = None
        logger.info("Timer stopped", extra={"elapsed_seconds": self.elapsed_seconds})
        return True

    def reset(self) -> None:
        """Zero the count. Running state and tick schedule are untouched."""
        self.elapsed_seconds = 0
        logger.info("Timer reset", extra={"running": self.running})

    async def aclose(self) -> None:
        """Stop and wait for the tick task to finish; used on shutdown."""
        task = self._task
        self.stop()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _tick_forever(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while True:
            # Absolute deadlines keep the rate at one tick per interval.
            deadline += self._interval
            now = loop.time()
            if deadline < now:
                # Deadlines missed while the loop was blocked are skipped, not replayed.
                deadline += math.ceil((now - deadline) / self._interval) * self._interval
            await asyncio.sleep(deadline - now)
            self.elapsed_seconds += 1
            try:
                self._on_tick()
            except Exception as e:
                logger.error(f"Error in timer tick callback: {str(e)}", exc_info=True)

"""Cooperative cancellation for validation runs."""

from __future__ import annotations

import asyncio


class CancellationToken:
    """Run-level flag polled by workers between attempts.

    Setting the token never interrupts an attempt that is already in flight;
    workers notice it before their next attempt or while backing off.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    async def sleep(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds unless cancelled first.

        Returns:
            True if the token was cancelled before or during the sleep.
        """
        if self._event.is_set():
            return True
        if delay <= 0:
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

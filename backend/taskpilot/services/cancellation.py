"""Cancellation handle shared between a planner session and its in-flight request."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

from taskpilot.core.errors import CancellationError

T = TypeVar("T")


class CancellationToken:
    """One-shot cancel signal.

    ``run`` races an awaitable against the signal; when the signal wins the
    underlying task is cancelled (closing its HTTP connection) and
    ``CancellationError`` is raised to the caller.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    async def run(self, awaitable: Awaitable[T]) -> T:
        if self.cancelled:
            raise CancellationError()

        work = asyncio.ensure_future(awaitable)
        signal = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({work, signal}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            signal.cancel()
            raise

        if work in done:
            signal.cancel()
            return work.result()

        work.cancel()
        await asyncio.gather(work, return_exceptions=True)
        raise CancellationError()

"""Counting permit pool bounding the number of in-flight request cycles."""

from __future__ import annotations

import asyncio
import logging

from .errors import AdmissionFailure, ConfigurationError

LOGGER = logging.getLogger(__name__)


class Permit:
    """Capacity token held by one request cycle.

    Releasing hands the capacity back to the pool; further releases are no-ops.
    """

    __slots__ = ("_controller", "_released")

    def __init__(self, controller: "AdmissionController"):
        self._controller = controller
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._controller._give_back()


class AdmissionController:
    """Fixed-capacity permit pool with a cancellation signal.

    ``acquire()`` waits for free capacity and fails with ``AdmissionFailure``
    once ``cancel()`` has been called, including while a caller is waiting.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ConfigurationError(f"Concurrency factor must be positive, got {capacity}")
        self._capacity = capacity
        self._semaphore = asyncio.Semaphore(capacity)
        self._cancelled = asyncio.Event()
        self._reason = "admission cancelled"
        self._outstanding = 0
        self._peak = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def outstanding(self) -> int:
        """Number of permits currently held."""
        return self._outstanding

    @property
    def available(self) -> int:
        return self._capacity - self._outstanding

    @property
    def peak(self) -> int:
        """Highest number of permits ever held at once."""
        return self._peak

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self, reason: str = "admission cancelled") -> None:
        """Refuse all current and future acquisitions."""
        if not self._cancelled.is_set():
            self._reason = reason
            self._cancelled.set()
            LOGGER.debug("Permit pool cancelled: %s", reason)

    async def acquire(self) -> Permit:
        if self._cancelled.is_set():
            raise AdmissionFailure(self._reason)

        if not self._semaphore.locked():
            await self._semaphore.acquire()
            return self._grant()

        acquiring = asyncio.ensure_future(self._semaphore.acquire())
        cancelling = asyncio.ensure_future(self._cancelled.wait())
        try:
            await asyncio.wait({acquiring, cancelling}, return_when=asyncio.FIRST_COMPLETED)
        except BaseException:
            cancelling.cancel()
            if acquiring.done() and not acquiring.cancelled():
                self._semaphore.release()
            else:
                acquiring.cancel()
            raise
        cancelling.cancel()

        if not acquiring.done():
            acquiring.cancel()
            raise AdmissionFailure(self._reason)
        if self._cancelled.is_set():
            # Both completed: hand the slot straight back.
            self._semaphore.release()
            raise AdmissionFailure(self._reason)
        return self._grant()

    def _grant(self) -> Permit:
        self._outstanding += 1
        if self._outstanding > self._peak:
            self._peak = self._outstanding
        return Permit(self)

    def _give_back(self) -> None:
        self._outstanding -= 1
        self._semaphore.release()

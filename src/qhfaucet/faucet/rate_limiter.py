"""Rate Limiter for faucet drips.

Features:
- One successful drip per address per window
- Per-address locks so a check and its matching record cannot interleave
  with another request for the same address
- In-memory only; state is lost on restart
"""

import asyncio
import logging
import time
import weakref
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""

    allowed: bool
    retry_after_seconds: int | None  # Seconds until next drip allowed
    reason: str | None  # Rejection reason if not allowed


class RateLimiter:
    """Per-address rate limiter.

    Callers must hold :meth:`hold` for an address across
    :meth:`check` and :meth:`record` to get check-then-record atomicity.

    Parameters
    ----------
    window_seconds : int
        Minimum interval between successful drips to one address.
    clock : Callable[[], float]
        Time source returning epoch seconds.
    """

    def __init__(
        self,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        self._window = window_seconds
        self._clock = clock
        self._last_drip: dict[str, float] = {}
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @property
    def window_seconds(self) -> int:
        """Rate limit window in seconds."""
        return self._window

    def now(self) -> float:
        """Current time from the configured clock."""
        return self._clock()

    @asynccontextmanager
    async def hold(self, address: str) -> AsyncIterator[None]:
        """Hold the exclusive section for ``address``.

        Locks are kept only while some task references them, so the lock
        table does not grow with the number of distinct addresses.
        """
        lock = self._locks.get(address)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[address] = lock
        async with lock:
            yield

    def check(self, address: str, now: float | None = None) -> RateLimitResult:
        """Check whether ``address`` may receive a drip.

        Parameters
        ----------
        address : str
            Recipient address.
        now : float | None
            Current time; read from the clock if None.

        Returns
        -------
        RateLimitResult
            Whether the drip is allowed, with the wait time if not.
        """
        now = self._clock() if now is None else now
        last = self._last_drip.get(address)
        if last is not None:
            elapsed = int(now - last)
            if elapsed < self._window:
                wait = self._window - elapsed
                return RateLimitResult(
                    allowed=False,
                    retry_after_seconds=wait,
                    reason=f"Rate limited. Please wait {wait} seconds",
                )
        return RateLimitResult(allowed=True, retry_after_seconds=None, reason=None)

    def record(self, address: str, now: float | None = None) -> None:
        """Record a successful drip, overwriting any previous timestamp."""
        self._last_drip[address] = self._clock() if now is None else now
        logger.debug("Rate limit recorded", extra={"address": address})

    def last_drip(self, address: str) -> float | None:
        """Timestamp of the last successful drip to ``address``, if any."""
        return self._last_drip.get(address)

    def reset(self, address: str) -> None:
        """Forget the last drip for an address (operator function)."""
        self._last_drip.pop(address, None)
        logger.info("Rate limit reset for address", extra={"address": address})

    def __len__(self) -> int:
        return len(self._last_drip)

"""Pending transaction registry.

A log of submitted transfers used only to cap how many drips the faucet
hands out. Entries are never confirmed or removed unless a retention
window is configured, so without one the faucet stops dripping for good
once ``max_pending`` entries have been recorded.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from qhfaucet.observability.metrics import PENDING_TRANSACTIONS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingTransaction:
    """A submitted transfer."""

    to: str
    amount: int
    timestamp: float


class PendingRegistry:
    """Bounded log of pending transactions with slot reservation.

    A drip reserves a slot before it submits, then either commits the
    record or releases the slot. Reserved slots count against the cap, so
    concurrent drips cannot overshoot ``max_pending``.

    Parameters
    ----------
    max_pending : int
        Maximum number of recorded plus in-flight transactions.
    retention_seconds : int | None
        Drop entries older than this before counting. None keeps entries forever.
    clock : Callable[[], float]
        Time source returning epoch seconds.
    """

    def __init__(
        self,
        max_pending: int = 100,
        retention_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._max_pending = max_pending
        self._retention = retention_seconds
        self._clock = clock
        self._entries: list[PendingTransaction] = []
        self._in_flight = 0

    @property
    def max_pending(self) -> int:
        """Configured capacity."""
        return self._max_pending

    @property
    def in_flight(self) -> int:
        """Slots reserved by drips that have not finished yet."""
        return self._in_flight

    @property
    def entries(self) -> list[PendingTransaction]:
        """Snapshot of recorded transactions, oldest first."""
        self._evict()
        return list(self._entries)

    def __len__(self) -> int:
        self._evict()
        return len(self._entries)

    def _evict(self) -> None:
        if self._retention is None or not self._entries:
            return
        cutoff = self._clock() - self._retention
        kept = [tx for tx in self._entries if tx.timestamp >= cutoff]
        if len(kept) != len(self._entries):
            logger.debug(
                "Evicted expired pending transactions",
                extra={"evicted": len(self._entries) - len(kept)},
            )
            self._entries = kept
            PENDING_TRANSACTIONS.set(len(self._entries))

    def reserve(self) -> bool:
        """Take a capacity slot for an upcoming submission.

        Returns
        -------
        bool
            False if the registry is full.
        """
        self._evict()
        if len(self._entries) + self._in_flight >= self._max_pending:
            return False
        self._in_flight += 1
        return True

    def release(self) -> None:
        """Give back a reserved slot after a failed submission."""
        if self._in_flight > 0:
            self._in_flight -= 1

    def commit(self, to: str, amount: int, timestamp: float) -> PendingTransaction:
        """Record a successful submission and consume its reserved slot."""
        self.release()
        tx = PendingTransaction(to=to, amount=amount, timestamp=timestamp)
        self._entries.append(tx)
        PENDING_TRANSACTIONS.set(len(self._entries))
        return tx

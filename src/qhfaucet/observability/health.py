"""Validator health aggregation.

``HealthAggregator.check`` backs the ``/health`` endpoint: every configured
validator is probed with ``system_health`` and the block height is read
from the first one that answered. ``HealthAggregator.inspect`` gives a
per-validator breakdown for operators (peers, sync state, height).
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from qhfaucet.rpc.client import RpcClient
from qhfaucet.rpc.errors import FaucetError

from .metrics import VALIDATORS_ONLINE

logger = logging.getLogger(__name__)

BLOCK_NUMBER_PATTERN = re.compile(r"^0x[0-9a-fA-F]+$")

MIN_PEERS = 2
MAX_BLOCK_LAG = 10


def parse_block_number(header: Any) -> int | None:
    """Extract the block height from a ``chain_getHeader`` result.

    Parameters
    ----------
    header : Any
        The RPC ``result``; expected to hold ``number`` as ``0x`` hex.

    Returns
    -------
    int | None
        The block height, or None if absent or malformed.
    """
    if not isinstance(header, dict):
        return None
    number = header.get("number")
    if not isinstance(number, str) or not BLOCK_NUMBER_PATTERN.match(number):
        return None
    return int(number[2:], 16)


@dataclass
class HealthReport:
    """Aggregated validator health."""

    healthy: bool
    validators_online: int
    block_height: int | None = None

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "healthy": self.healthy,
            "validators_online": self.validators_online,
            "block_height": self.block_height,
        }


@dataclass
class ValidatorReport:
    """Health detail for a single validator."""

    endpoint: str
    online: bool
    peers: int | None = None
    is_syncing: bool | None = None
    block_height: int | None = None
    error: str | None = None

    def issues(self, min_peers: int = MIN_PEERS) -> list[str]:
        """Problems worth alerting an operator about."""
        if not self.online:
            return [f"not responding: {self.error or 'unreachable'}"]
        found = []
        if self.peers is not None and self.peers < min_peers:
            found.append(f"Low peer count: {self.peers} (min: {min_peers})")
        if self.is_syncing:
            found.append("Node is syncing")
        return found

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "endpoint": self.endpoint,
            "online": self.online,
            "peers": self.peers,
            "is_syncing": self.is_syncing,
            "block_height": self.block_height,
            "error": self.error,
        }


def block_lag(reports: list[ValidatorReport]) -> int | None:
    """Spread between the highest and lowest known block heights.

    Returns None when fewer than two validators reported a height.
    """
    heights = [r.block_height for r in reports if r.block_height is not None]
    if len(heights) < 2:
        return None
    return max(heights) - min(heights)


@dataclass
class HealthAggregator:
    """Fan-out health queries across validators.

    Parameters
    ----------
    client : RpcClient
        JSON-RPC client.
    endpoints : list[str]
        Validator URLs in configured order.
    timeout : float
        Per-call timeout in seconds.
    """

    client: RpcClient
    endpoints: list[str] = field(default_factory=list)
    timeout: float = 5.0

    async def _header_height(self, endpoint: str) -> int | None:
        try:
            header = await self.client.call(endpoint, "chain_getHeader", timeout=self.timeout)
        except FaucetError as e:
            logger.debug(
                "Block header lookup failed", extra={"endpoint": endpoint, "error": str(e)}
            )
            return None
        return parse_block_number(header)

    async def check(self) -> HealthReport:
        """Probe all validators and read the height from the first responder.

        Never raises; unreachable validators simply count as offline.

        Returns
        -------
        HealthReport
            Online count, overall health and optional block height.
        """
        alive = await asyncio.gather(
            *(self.client.ping(endpoint, timeout=self.timeout) for endpoint in self.endpoints)
        )
        online = [endpoint for endpoint, ok in zip(self.endpoints, alive) if ok]
        VALIDATORS_ONLINE.set(len(online))

        block_height = None
        if online:
            block_height = await self._header_height(online[0])

        return HealthReport(
            healthy=bool(online),
            validators_online=len(online),
            block_height=block_height,
        )

    async def _inspect_one(self, endpoint: str) -> ValidatorReport:
        try:
            health = await self.client.call(endpoint, "system_health", timeout=self.timeout)
        except FaucetError as e:
            return ValidatorReport(endpoint=endpoint, online=False, error=str(e))

        report = ValidatorReport(endpoint=endpoint, online=True)
        if isinstance(health, dict):
            peers = health.get("peers")
            if isinstance(peers, int) and not isinstance(peers, bool):
                report.peers = peers
            syncing = health.get("isSyncing")
            if isinstance(syncing, bool):
                report.is_syncing = syncing
        report.block_height = await self._header_height(endpoint)
        return report

    async def inspect(self) -> list[ValidatorReport]:
        """Collect per-validator health detail, in configured order."""
        return list(await asyncio.gather(*(self._inspect_one(e) for e in self.endpoints)))

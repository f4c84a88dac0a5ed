"""Validator selection.

The faucet talks to a single "active" validator. It is chosen by probing
the configured endpoints in order and taking the first that answers; when
none answer the first endpoint is used anyway.
"""

import asyncio
import logging

from .client import RpcClient

logger = logging.getLogger(__name__)


class ValidatorSelector:
    """Holds the active validator endpoint.

    Parameters
    ----------
    client : RpcClient
        Client used for liveness probes.
    endpoints : list[str]
        Configured validator URLs, in preference order.
    probe_timeout : float
        Timeout for each ``system_health`` probe, in seconds.
    """

    def __init__(self, client: RpcClient, endpoints: list[str], probe_timeout: float = 5.0):
        if not endpoints:
            raise ValueError("At least one validator endpoint is required")
        self._client = client
        self._endpoints = list(endpoints)
        self._probe_timeout = probe_timeout
        self._active = self._endpoints[0]
        self._lock = asyncio.Lock()

    @property
    def endpoints(self) -> list[str]:
        """Configured validator endpoints."""
        return list(self._endpoints)

    @property
    def active(self) -> str:
        """Currently selected validator endpoint."""
        return self._active

    async def select(self) -> str:
        """Probe validators in order and make the first responder active.

        Falls back to the first configured endpoint when no validator responds.
        Concurrent callers share a single probe round.

        Returns
        -------
        str
            The newly active endpoint.
        """
        if self._lock.locked():
            # Another task is already probing; wait for its answer.
            async with self._lock:
                return self._active

        async with self._lock:
            for endpoint in self._endpoints:
                if await self._client.ping(endpoint, timeout=self._probe_timeout):
                    logger.info("Found active validator", extra={"endpoint": endpoint})
                    self._active = endpoint
                    return endpoint

            self._active = self._endpoints[0]
            logger.warning(
                "No validator responded, defaulting to first endpoint",
                extra={"endpoint": self._active},
            )
            return self._active

"""JSON-RPC 2.0 client for talking to validator nodes."""

import asyncio
import logging
import time
from typing import Any

import aiohttp

from qhfaucet.observability.metrics import RPC_DURATION

from .errors import RpcError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
PROBE_METHOD = "system_health"


def build_request(method: str, params: list | None = None) -> dict[str, Any]:
    """Build a JSON-RPC 2.0 request envelope.

    Parameters
    ----------
    method : str
        RPC method name.
    params : list | None
        Positional parameters, empty if None.

    Returns
    -------
    dict[str, Any]
        The request body.
    """
    return {"jsonrpc": "2.0", "method": method, "params": params or [], "id": 1}


def _error_message(error: Any) -> str:
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return "Unknown"


class RpcClient:
    """Async JSON-RPC client over HTTP POST.

    One ``aiohttp.ClientSession`` is shared by every call. The session is
    created lazily, or explicitly with :meth:`start`, and must be closed with
    :meth:`close` (or by using the client as an async context manager).

    Parameters
    ----------
    default_timeout : float
        Timeout in seconds for calls that do not pass their own.
    session : aiohttp.ClientSession | None
        Externally owned session. The client will not close it.
    """

    def __init__(
        self,
        default_timeout: float = DEFAULT_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ):
        self._default_timeout = default_timeout
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "RpcClient":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def start(self) -> None:
        """Create the HTTP session if it does not exist yet."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def _session_or_start(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = None
            await self.start()
        return self._session

    async def call(
        self,
        endpoint: str,
        method: str,
        params: list | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Call a JSON-RPC method and return its ``result``.

        Parameters
        ----------
        endpoint : str
            Validator HTTP URL.
        method : str
            RPC method name.
        params : list | None
            Positional parameters.
        timeout : float | None
            Overall request timeout in seconds.

        Returns
        -------
        Any
            The ``result`` member of the response, verbatim (None if absent).

        Raises
        ------
        TransportError
            On connection failure, timeout, non-2xx status or a non-JSON body.
        RpcError
            If the response carries an ``error`` member.
        """
        session = await self._session_or_start()
        client_timeout = aiohttp.ClientTimeout(total=timeout or self._default_timeout)
        started = time.perf_counter()

        try:
            async with session.post(
                endpoint, json=build_request(method, params), timeout=client_timeout
            ) as resp:
                if not 200 <= resp.status < 300:
                    raise TransportError(f"{endpoint} returned HTTP {resp.status}")
                try:
                    body = await resp.json(content_type=None)
                except ValueError as e:
                    raise TransportError(f"Invalid JSON from {endpoint}: {e}") from e
        except asyncio.TimeoutError as e:
            raise TransportError(f"Timed out calling {method} on {endpoint}") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Failed to reach {endpoint}: {e}") from e
        finally:
            RPC_DURATION.labels(method=method).observe(time.perf_counter() - started)

        if not isinstance(body, dict):
            raise TransportError(f"Unexpected response from {endpoint}: {body!r}")

        if "error" in body and body["error"] is not None:
            message = _error_message(body["error"])
            logger.debug(
                "RPC error response",
                extra={"endpoint": endpoint, "method": method, "error": message},
            )
            raise RpcError(message)

        return body.get("result")

    async def ping(self, endpoint: str, timeout: float = 5.0) -> bool:
        """Check whether a validator answers ``system_health`` at the transport level.

        The response payload is not inspected; any 2xx answer counts as alive.

        Parameters
        ----------
        endpoint : str
            Validator HTTP URL.
        timeout : float
            Probe timeout in seconds.

        Returns
        -------
        bool
            True if the node responded with a 2xx status.
        """
        session = await self._session_or_start()
        try:
            async with session.post(
                endpoint,
                json=build_request(PROBE_METHOD),
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as resp:
                return 200 <= resp.status < 300
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug("Validator probe failed", extra={"endpoint": endpoint, "error": str(e)})
            return False

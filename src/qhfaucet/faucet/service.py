"""Faucet Service.

Coordinates all faucet components for a drip:
- Address validation
- Rate limiter
- Pending transaction registry
- Transfer submitter against the active validator
"""

import logging
import time
from dataclasses import asdict, dataclass
from enum import Enum

from qhfaucet.observability.metrics import DRIP_DURATION, DRIPS, TOKENS_DISTRIBUTED
from qhfaucet.rpc.errors import FaucetError, TransportError
from qhfaucet.rpc.validators import ValidatorSelector

from .pending import PendingRegistry
from .rate_limiter import RateLimiter
from .submitter import TransferSubmitter

logger = logging.getLogger(__name__)

# Substrate SS58 addresses on this chain: prefix "5", 48 characters
ADDRESS_PREFIX = "5"
ADDRESS_LENGTH = 48

INVALID_ADDRESS_MESSAGE = (
    "Invalid address format. Must be a valid Substrate address starting with '5'"
)
CAPACITY_MESSAGE = "Too many pending transactions. Please try again later."
SUCCESS_MESSAGE = "Tokens sent successfully!"


def validate_address(address: str) -> bool:
    """Validate Substrate address shape.

    Parameters
    ----------
    address : str
        Address to validate, already trimmed.

    Returns
    -------
    bool
        True if the address starts with ``5`` and is 48 characters long.
    """
    return address.startswith(ADDRESS_PREFIX) and len(address) == ADDRESS_LENGTH


class DripStatus(str, Enum):
    """Drip result status."""

    SUCCESS = "success"
    INVALID_ADDRESS = "invalid_address"
    RATE_LIMITED = "rate_limited"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    SUBMISSION_FAILED = "submission_failed"


@dataclass
class DripResult:
    """Result of a drip request."""

    success: bool
    status: DripStatus
    message: str
    tx_hash: str | None
    amount: str
    retry_after_seconds: int | None = None


@dataclass
class FaucetStatus:
    """Current faucet status."""

    status: str
    active_validator: str
    pending_txs: int
    drip_amount: str
    rate_limit_seconds: int

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return asdict(self)


class FaucetService:
    """Main faucet service orchestrating all components.

    Parameters
    ----------
    selector : ValidatorSelector
        Holds the active validator.
    submitter : TransferSubmitter
        Performs the gateway transfer.
    rate_limiter : RateLimiter
        Per-address rate limiter.
    pending : PendingRegistry
        Pending transaction registry.
    drip_amount : int
        Raw units sent per drip.
    token_decimals : int
        Decimals used to display amounts.
    token_symbol : str
        Symbol used to display amounts.
    reselect_on_transport_error : bool
        Re-probe validators after a submission fails to reach the active one.
    """

    def __init__(
        self,
        selector: ValidatorSelector,
        submitter: TransferSubmitter,
        rate_limiter: RateLimiter,
        pending: PendingRegistry,
        drip_amount: int = 10_000_000_000_000,
        token_decimals: int = 12,
        token_symbol: str = "QHT",
        reselect_on_transport_error: bool = False,
    ):
        self._selector = selector
        self._submitter = submitter
        self._rate_limiter = rate_limiter
        self._pending = pending
        self._drip_amount = drip_amount
        self._token_decimals = token_decimals
        self._token_symbol = token_symbol
        self._reselect = reselect_on_transport_error
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if the faucet service is running."""
        return self._running

    @property
    def active_validator(self) -> str:
        """Endpoint drips are submitted through."""
        return self._selector.active

    @property
    def drip_display(self) -> str:
        """Drip amount in whole tokens, e.g. ``"10 QHT"``."""
        return f"{self._drip_amount // 10**self._token_decimals} {self._token_symbol}"

    async def start(self) -> None:
        """Start the faucet service by selecting the active validator."""
        if self._running:
            logger.warning("Faucet service already running")
            return

        endpoint = await self._selector.select()
        self._running = True
        logger.info("Faucet service started", extra={"validator": endpoint})

    async def stop(self) -> None:
        """Stop the faucet service."""
        if not self._running:
            return
        self._running = False
        logger.info("Faucet service stopped")

    def get_status(self) -> FaucetStatus:
        """Get current faucet status.

        Returns
        -------
        FaucetStatus
            Snapshot of the active validator, pending count and limits.
        """
        return FaucetStatus(
            status="running",
            active_validator=self._selector.active,
            pending_txs=len(self._pending),
            drip_amount=self.drip_display,
            rate_limit_seconds=self._rate_limiter.window_seconds,
        )

    async def drip(self, address: str) -> DripResult:
        """Handle a drip request.

        Parameters
        ----------
        address : str
            Recipient address as supplied by the caller.

        Returns
        -------
        DripResult
            Result of the request. No state is changed unless it succeeded.
        """
        started = time.perf_counter()
        try:
            result = await self._drip(address.strip())
        finally:
            DRIP_DURATION.observe(time.perf_counter() - started)
        DRIPS.labels(status=result.status.value).inc()
        return result

    async def _drip(self, address: str) -> DripResult:
        if not validate_address(address):
            return DripResult(
                success=False,
                status=DripStatus.INVALID_ADDRESS,
                message=INVALID_ADDRESS_MESSAGE,
                tx_hash=None,
                amount="0",
            )

        transport_failed = False
        async with self._rate_limiter.hold(address):
            now = self._rate_limiter.now()

            rate_result = self._rate_limiter.check(address, now)
            if not rate_result.allowed:
                return DripResult(
                    success=False,
                    status=DripStatus.RATE_LIMITED,
                    message=rate_result.reason or "Rate limit exceeded",
                    tx_hash=None,
                    amount="0",
                    retry_after_seconds=rate_result.retry_after_seconds,
                )

            if not self._pending.reserve():
                return DripResult(
                    success=False,
                    status=DripStatus.CAPACITY_EXCEEDED,
                    message=CAPACITY_MESSAGE,
                    tx_hash=None,
                    amount="0",
                )

            endpoint = self._selector.active
            try:
                tx_hash = await self._submitter.submit(endpoint, address, self._drip_amount)
            except FaucetError as e:
                self._pending.release()
                transport_failed = isinstance(e, TransportError)
                logger.warning(
                    "Failed to send drip",
                    extra={"recipient": address, "validator": endpoint, "error": str(e)},
                )
                result = DripResult(
                    success=False,
                    status=DripStatus.SUBMISSION_FAILED,
                    message=f"Failed to send transaction: {e}",
                    tx_hash=None,
                    amount="0",
                )
            except BaseException:
                self._pending.release()
                raise
            else:
                self._rate_limiter.record(address, now)
                self._pending.commit(address, self._drip_amount, now)
                TOKENS_DISTRIBUTED.inc(self._drip_amount)
                logger.info(
                    "Drip sent",
                    extra={
                        "recipient": address,
                        "amount": str(self._drip_amount),
                        "tx_hash": tx_hash,
                    },
                )
                return DripResult(
                    success=True,
                    status=DripStatus.SUCCESS,
                    message=SUCCESS_MESSAGE,
                    tx_hash=tx_hash,
                    amount=self.drip_display,
                )

        if transport_failed and self._reselect:
            await self._selector.select()
        return result

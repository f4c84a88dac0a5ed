"""Faucet components."""

from .pending import PendingRegistry, PendingTransaction
from .rate_limiter import RateLimiter, RateLimitResult
from .service import DripResult, DripStatus, FaucetService, FaucetStatus, validate_address
from .submitter import TransferSubmitter

__all__ = [
    "DripResult",
    "DripStatus",
    "FaucetService",
    "FaucetStatus",
    "PendingRegistry",
    "PendingTransaction",
    "RateLimitResult",
    "RateLimiter",
    "TransferSubmitter",
    "validate_address",
]

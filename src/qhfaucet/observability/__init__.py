"""Observability module for the faucet.

The health aggregator lives in :mod:`qhfaucet.observability.health`; it is
not re-exported here because it depends on the RPC client, which itself
records metrics from this package.
"""

from .logging import clear_request_id, configure_logging, get_logger, set_request_id
from .metrics import (
    DRIP_DURATION,
    DRIPS,
    PENDING_TRANSACTIONS,
    RPC_DURATION,
    TOKENS_DISTRIBUTED,
    VALIDATORS_ONLINE,
)

__all__ = [
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "set_request_id",
    # Metrics
    "DRIP_DURATION",
    "DRIPS",
    "PENDING_TRANSACTIONS",
    "RPC_DURATION",
    "TOKENS_DISTRIBUTED",
    "VALIDATORS_ONLINE",
]

"""Prometheus metrics for the faucet.

Metrics:
- qhfaucet_drips_total: Counter of drip requests by outcome
- qhfaucet_tokens_distributed_total: Counter of raw token units sent
- qhfaucet_pending_transactions: Gauge of recorded pending transactions
- qhfaucet_validators_online: Gauge of validators answering the last health check
- qhfaucet_drip_duration_seconds: Histogram of drip handling duration
- qhfaucet_rpc_duration_seconds: Histogram of upstream JSON-RPC call duration
"""

from prometheus_client import Counter, Gauge, Histogram

# Counters
DRIPS = Counter(
    "qhfaucet_drips_total",
    "Total number of drip requests",
    ["status"],
)

TOKENS_DISTRIBUTED = Counter(
    "qhfaucet_tokens_distributed_total",
    "Total raw token units distributed",
)

# Gauges
PENDING_TRANSACTIONS = Gauge(
    "qhfaucet_pending_transactions",
    "Number of transactions in the pending registry",
)

VALIDATORS_ONLINE = Gauge(
    "qhfaucet_validators_online",
    "Validators that answered the most recent health check",
)

# Histograms
DRIP_DURATION = Histogram(
    "qhfaucet_drip_duration_seconds",
    "Drip request processing duration",
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

RPC_DURATION = Histogram(
    "qhfaucet_rpc_duration_seconds",
    "Upstream JSON-RPC call duration",
    ["method"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

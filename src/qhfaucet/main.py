#!/usr/bin/env python3
"""QuantumHarmony testnet faucet.

Entry point for the faucet service and CLI.
"""

import asyncio
import logging
import signal
import sys

from qhfaucet.api.server import FaucetServer
from qhfaucet.cli import create_parser, run_cli
from qhfaucet.config import FaucetConfig
from qhfaucet.faucet import FaucetService, PendingRegistry, RateLimiter, TransferSubmitter
from qhfaucet.observability.health import HealthAggregator
from qhfaucet.observability.logging import configure_logging
from qhfaucet.rpc.client import RpcClient
from qhfaucet.rpc.errors import ConfigurationError
from qhfaucet.rpc.validators import ValidatorSelector


def parse_args(argv: list[str] | None = None):
    """Parse command line arguments."""
    return create_parser().parse_args(argv)


async def run_service(config: FaucetConfig) -> None:
    """Run the faucet service (long-running mode).

    Wires up and starts all service components:
    - RpcClient shared by every upstream call
    - ValidatorSelector, probed once at startup
    - RateLimiter and PendingRegistry
    - TransferSubmitter for the faucet account
    - FaucetServer exposing the HTTP API
    """
    configure_logging(level=config.log_level, log_format=config.log_format)

    logger = logging.getLogger(__name__)
    logger.info("Faucet starting")
    logger.info("Validators: %s", ", ".join(config.validators))
    logger.info(
        "Faucet limits: drip=%s, window=%ss, max_pending=%s",
        config.drip_amount,
        config.rate_limit_seconds,
        config.max_pending_txs,
    )

    if not config.source_address:
        logger.error("No faucet account configured. Set QH_FAUCET_SOURCE_ADDRESS")
        sys.exit(1)
    try:
        secret_key = config.load_secret_key()
    except ConfigurationError as e:
        logger.error("%s", e)
        sys.exit(1)

    logger.info("Faucet account: %s", config.source_address)

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def on_shutdown_signal(sig_name: str) -> None:
        logger.info("Received signal %s, initiating shutdown", sig_name)
        shutdown_event.set()

    loop.add_signal_handler(signal.SIGTERM, lambda: on_shutdown_signal("SIGTERM"))
    loop.add_signal_handler(signal.SIGINT, lambda: on_shutdown_signal("SIGINT"))

    async with RpcClient(default_timeout=config.rpc_timeout) as client:
        selector = ValidatorSelector(client, config.validators, probe_timeout=config.probe_timeout)
        submitter = TransferSubmitter(
            client,
            from_address=config.source_address,
            secret_key=secret_key,
            rpc_timeout=config.rpc_timeout,
            submit_timeout=config.submit_timeout,
        )
        faucet = FaucetService(
            selector=selector,
            submitter=submitter,
            rate_limiter=RateLimiter(window_seconds=config.rate_limit_seconds),
            pending=PendingRegistry(
                max_pending=config.max_pending_txs,
                retention_seconds=config.pending_retention_seconds,
            ),
            drip_amount=config.drip_amount,
            token_decimals=config.token_decimals,
            token_symbol=config.token_symbol,
            reselect_on_transport_error=config.reselect_on_transport_error,
        )
        await faucet.start()
        logger.info("Using validator: %s", faucet.active_validator)

        server = FaucetServer(
            faucet,
            HealthAggregator(client, config.validators, timeout=config.probe_timeout),
            host=config.host,
            port=config.port,
        )
        await server.start()
        logger.info("Faucet service ready")

        await shutdown_event.wait()

        logger.info("Faucet shutting down...")
        await server.stop()
        await faucet.stop()

    logger.info("Faucet shutdown complete")


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the faucet."""
    args = parse_args(argv)

    if args.command and args.command != "run":
        exit_code = run_cli(args)
        if exit_code >= 0:
            sys.exit(exit_code)
        create_parser().print_help()
        sys.exit(0)

    asyncio.run(run_service(FaucetConfig()))


if __name__ == "__main__":
    main()

"""CLI subcommands for faucet operations.

Provides command-line interface for:
- Validator monitoring (health, peers, sync state, block lag)
- Validator selection (which endpoint the service would use)
- One-off drips that bypass the HTTP rate limiter
"""

import argparse
import asyncio
import json
import sys

from qhfaucet.config import FaucetConfig
from qhfaucet.faucet.service import INVALID_ADDRESS_MESSAGE, validate_address
from qhfaucet.faucet.submitter import TransferSubmitter
from qhfaucet.observability.health import MAX_BLOCK_LAG, MIN_PEERS, HealthAggregator, block_lag
from qhfaucet.rpc.client import RpcClient
from qhfaucet.rpc.errors import FaucetError
from qhfaucet.rpc.validators import ValidatorSelector


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="qhfaucet",
        description="QuantumHarmony testnet faucet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global flags
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would happen without executing",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("run", help="Start the faucet service")

    validators_parser = subparsers.add_parser(
        "validators", help="Check health of every configured validator"
    )
    validators_parser.add_argument(
        "--min-peers", type=int, default=MIN_PEERS, help=f"Minimum peers (default: {MIN_PEERS})"
    )
    validators_parser.add_argument(
        "--max-lag",
        type=int,
        default=MAX_BLOCK_LAG,
        help=f"Maximum block height spread (default: {MAX_BLOCK_LAG})",
    )

    subparsers.add_parser("select", help="Show which validator the faucet would use")

    drip_parser = subparsers.add_parser("drip", help="Send one drip, bypassing rate limits")
    drip_parser.add_argument("address", type=str, help="Recipient address")

    return parser


class CLIContext:
    """Shared context for CLI commands."""

    def __init__(self, config: FaucetConfig, dry_run: bool = False, json_output: bool = False):
        self.config = config
        self.dry_run = dry_run
        self.json_output = json_output

    def client(self) -> RpcClient:
        """Create an RPC client; use as an async context manager."""
        return RpcClient(default_timeout=self.config.rpc_timeout)

    def output(self, data: dict) -> None:
        """Output data in the appropriate format."""
        if self.json_output:
            print(json.dumps(data, indent=2))
        else:
            self._print_formatted(data)

    def _print_formatted(self, data: dict, indent: int = 0) -> None:
        """Print data in human-readable format."""
        prefix = "  " * indent
        for key, value in data.items():
            if isinstance(value, dict):
                print(f"{prefix}{key}:")
                self._print_formatted(value, indent + 1)
            elif isinstance(value, list) and value and isinstance(value[0], dict):
                print(f"{prefix}{key}:")
                for item in value:
                    self._print_formatted(item, indent + 1)
                    print()
            else:
                print(f"{prefix}{key}: {value}")


# Validator commands


async def _inspect_validators(ctx: CLIContext, min_peers: int, max_lag: int) -> int:
    async with ctx.client() as client:
        aggregator = HealthAggregator(
            client, ctx.config.validators, timeout=ctx.config.probe_timeout
        )
        reports = await aggregator.inspect()

    lag = block_lag(reports)
    failed = [r for r in reports if r.issues(min_peers)]
    lagging = lag is not None and lag > max_lag

    ctx.output(
        {
            "validators": [dict(r.to_dict(), issues=r.issues(min_peers)) for r in reports],
            "block_lag": lag,
            "block_lag_ok": not lagging,
            "status": (
                "All systems operational"
                if not failed and not lagging
                else f"{len(failed)} validator(s) with issues"
            ),
        }
    )
    return 1 if failed or lagging else 0


def cmd_validators(ctx: CLIContext, min_peers: int = MIN_PEERS, max_lag: int = MAX_BLOCK_LAG) -> int:
    """Show per-validator health and block lag."""
    return asyncio.run(_inspect_validators(ctx, min_peers, max_lag))


async def _select_validator(ctx: CLIContext) -> str:
    async with ctx.client() as client:
        selector = ValidatorSelector(
            client, ctx.config.validators, probe_timeout=ctx.config.probe_timeout
        )
        return await selector.select()


def cmd_select(ctx: CLIContext) -> int:
    """Show the validator the faucet would select at startup."""
    endpoint = asyncio.run(_select_validator(ctx))
    ctx.output({"active_validator": endpoint, "candidates": ", ".join(ctx.config.validators)})
    return 0


# Drip command


async def _send_drip(ctx: CLIContext, address: str) -> str:
    async with ctx.client() as client:
        selector = ValidatorSelector(
            client, ctx.config.validators, probe_timeout=ctx.config.probe_timeout
        )
        endpoint = await selector.select()
        submitter = TransferSubmitter(
            client,
            from_address=ctx.config.source_address,
            secret_key=ctx.config.load_secret_key(),
            rpc_timeout=ctx.config.rpc_timeout,
            submit_timeout=ctx.config.submit_timeout,
        )
        return await submitter.submit(endpoint, address, ctx.config.drip_amount)


def cmd_drip(ctx: CLIContext, address: str) -> int:
    """Send a single drip to an address."""
    address = address.strip()
    if not validate_address(address):
        ctx.output({"error": INVALID_ADDRESS_MESSAGE})
        return 1

    if not ctx.config.source_address:
        ctx.output({"error": "No faucet account configured. Set QH_FAUCET_SOURCE_ADDRESS"})
        return 1

    amount = ctx.config.drip_amount
    if ctx.dry_run:
        ctx.output(
            {
                "dry_run": True,
                "action": "drip",
                "to": address,
                "amount": str(amount),
                "message": f"Would send {amount} raw units from {ctx.config.source_address}",
            }
        )
        return 0

    try:
        tx_hash = asyncio.run(_send_drip(ctx, address))
    except FaucetError as e:
        ctx.output({"error": str(e)})
        return 1

    ctx.output({"success": True, "to": address, "amount": str(amount), "tx_hash": tx_hash})
    return 0


def run_cli(args: argparse.Namespace) -> int:
    """Execute CLI command based on parsed arguments.

    Returns
    -------
    int
        Exit code: 0 for success, positive for error, -1 signals caller
        to show help (no CLI command specified).
    """
    try:
        config = FaucetConfig()
    except Exception as e:
        if args.json:
            print(json.dumps({"error": f"Configuration error: {e}"}))
        else:
            print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    ctx = CLIContext(config, dry_run=args.dry_run, json_output=args.json)

    if args.command == "validators":
        return cmd_validators(ctx, args.min_peers, args.max_lag)
    elif args.command == "select":
        return cmd_select(ctx)
    elif args.command == "drip":
        return cmd_drip(ctx, args.address)
    else:
        return -1

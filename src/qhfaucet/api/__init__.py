"""HTTP API for the faucet."""

from .server import FaucetServer

__all__ = ["FaucetServer"]

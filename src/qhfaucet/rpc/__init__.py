"""Validator JSON-RPC integration."""

from .client import RpcClient, build_request
from .errors import (
    ConfigurationError,
    FaucetError,
    MissingTxHashError,
    NoGenesisHashError,
    RpcError,
    SubmissionError,
    TransportError,
)
from .validators import ValidatorSelector

__all__ = [
    "ConfigurationError",
    "FaucetError",
    "MissingTxHashError",
    "NoGenesisHashError",
    "RpcClient",
    "RpcError",
    "SubmissionError",
    "TransportError",
    "ValidatorSelector",
    "build_request",
]

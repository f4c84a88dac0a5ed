"""Exception hierarchy for faucet upstream and configuration failures."""


class FaucetError(Exception):
    """Base class for all faucet errors."""


class ConfigurationError(FaucetError):
    """Invalid or missing configuration (e.g. secret key material)."""


class TransportError(FaucetError):
    """The validator could not be reached or returned a non-success response."""


class RpcError(FaucetError):
    """The validator answered with a JSON-RPC ``error`` object.

    Parameters
    ----------
    message : str
        The ``error.message`` text reported by the node.
    """

    def __init__(self, message: str):
        super().__init__(f"RPC error: {message}")
        self.message = message


class SubmissionError(FaucetError):
    """The gateway call sequence returned an unusable result."""


class NoGenesisHashError(SubmissionError):
    """``gateway_genesisHash`` did not return a string."""


class MissingTxHashError(SubmissionError):
    """``gateway_submit`` returned neither ``{hash}`` nor a bare string."""

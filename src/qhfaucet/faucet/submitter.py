"""Transfer submission through the validator's gateway RPC.

The validator signs on our behalf: ``gateway_submit`` takes the raw secret
key, so the faucet holds no signing code of its own. A transfer is three
calls, each depending on the one before:

1. ``gateway_genesisHash``
2. ``gateway_nonce`` for the faucet account
3. ``gateway_submit`` with the transfer and key
"""

import logging
from typing import Any

from pydantic import SecretStr

from qhfaucet.rpc.client import RpcClient
from qhfaucet.rpc.errors import MissingTxHashError, NoGenesisHashError

logger = logging.getLogger(__name__)


def _hex_key(secret_key: SecretStr) -> str:
    raw = secret_key.get_secret_value().strip()
    if raw[:2].lower() == "0x":
        raw = raw[2:]
    return f"0x{raw}"


def _extract_tx_hash(result: Any) -> str | None:
    if isinstance(result, dict) and isinstance(result.get("hash"), str):
        return result["hash"]
    if isinstance(result, str):
        return result
    return None


class TransferSubmitter:
    """Submits signed transfers from the faucet account.

    Parameters
    ----------
    client : RpcClient
        JSON-RPC client.
    from_address : str
        Faucet account SS58 address.
    secret_key : SecretStr
        Faucet account secret key as hex, with or without ``0x``.
    rpc_timeout : float
        Timeout for the genesis hash and nonce lookups.
    submit_timeout : float
        Timeout for ``gateway_submit``; remote signing is slow.
    """

    def __init__(
        self,
        client: RpcClient,
        from_address: str,
        secret_key: SecretStr,
        rpc_timeout: float = 10.0,
        submit_timeout: float = 60.0,
    ):
        self._client = client
        self._from = from_address
        self._secret_key = secret_key
        self._rpc_timeout = rpc_timeout
        self._submit_timeout = submit_timeout

    @property
    def from_address(self) -> str:
        """Faucet account address."""
        return self._from

    async def get_genesis_hash(self, endpoint: str) -> str:
        """Fetch the chain genesis hash.

        Raises
        ------
        NoGenesisHashError
            If the result is not a string.
        """
        result = await self._client.call(
            endpoint, "gateway_genesisHash", timeout=self._rpc_timeout
        )
        if not isinstance(result, str):
            raise NoGenesisHashError("Failed to get genesis hash")
        return result

    async def get_nonce(self, endpoint: str, address: str) -> int:
        """Fetch the account nonce; a missing or non-integer result counts as 0."""
        result = await self._client.call(
            endpoint, "gateway_nonce", [address], timeout=self._rpc_timeout
        )
        if isinstance(result, int) and not isinstance(result, bool) and result >= 0:
            return result
        return 0

    async def submit(self, endpoint: str, to: str, amount: int) -> str:
        """Transfer ``amount`` raw units from the faucet account to ``to``.

        Parameters
        ----------
        endpoint : str
            Validator to submit through.
        to : str
            Recipient address.
        amount : int
            Amount in raw units.

        Returns
        -------
        str
            Transaction hash reported by the gateway.

        Raises
        ------
        TransportError, RpcError
            If any of the three calls fails.
        NoGenesisHashError, MissingTxHashError
            If the gateway returns an unusable result.
        """
        genesis_hash = await self.get_genesis_hash(endpoint)
        nonce = await self.get_nonce(endpoint, self._from)

        logger.info(
            "Submitting via gateway_submit",
            extra={
                "to": to,
                "amount": str(amount),
                "nonce": nonce,
                "genesis": genesis_hash[:16],
            },
        )

        result = await self._client.call(
            endpoint,
            "gateway_submit",
            [
                {
                    "from": self._from,
                    "to": to,
                    "amount": str(amount),
                    "nonce": nonce,
                    "genesisHash": genesis_hash,
                    "secretKey": _hex_key(self._secret_key),
                }
            ],
            timeout=self._submit_timeout,
        )

        tx_hash = _extract_tx_hash(result)
        if tx_hash is None:
            raise MissingTxHashError(f"No transaction hash returned: {result!r}")

        logger.info("Transaction submitted", extra={"tx_hash": tx_hash})
        return tx_hash

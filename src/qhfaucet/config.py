"""Configuration management for the faucet using Pydantic Settings."""

from pathlib import Path
from typing import Annotated

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from qhfaucet.rpc.errors import ConfigurationError


class FaucetConfig(BaseSettings):
    """Faucet service configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # Network
    validators: Annotated[list[str], NoDecode] = Field(
        default=["http://127.0.0.1:9944"], alias="QH_FAUCET_VALIDATORS"
    )
    rpc_timeout: float = Field(default=10.0, alias="QH_FAUCET_RPC_TIMEOUT", gt=0)
    probe_timeout: float = Field(default=5.0, alias="QH_FAUCET_PROBE_TIMEOUT", gt=0)
    submit_timeout: float = Field(default=60.0, alias="QH_FAUCET_SUBMIT_TIMEOUT", gt=0)
    reselect_on_transport_error: bool = Field(
        default=False, alias="QH_FAUCET_RESELECT_ON_TRANSPORT_ERROR"
    )

    # Faucet account
    source_address: str | None = Field(default=None, alias="QH_FAUCET_SOURCE_ADDRESS")
    secret_key: SecretStr | None = Field(default=None, alias="QH_FAUCET_SECRET_KEY")
    secret_key_file: str | None = Field(default=None, alias="QH_FAUCET_SECRET_KEY_FILE")

    # Faucet limits
    drip_amount: int = Field(default=10_000_000_000_000, alias="QH_FAUCET_DRIP_AMOUNT", gt=0)
    token_decimals: int = Field(default=12, alias="QH_FAUCET_TOKEN_DECIMALS", ge=0)
    token_symbol: str = Field(default="QHT", alias="QH_FAUCET_TOKEN_SYMBOL")
    rate_limit_seconds: int = Field(default=60, alias="QH_FAUCET_RATE_LIMIT_SECONDS", gt=0)
    max_pending_txs: int = Field(default=100, alias="QH_FAUCET_MAX_PENDING_TXS", gt=0)
    pending_retention_seconds: int | None = Field(
        default=None, alias="QH_FAUCET_PENDING_RETENTION_SECONDS", gt=0
    )

    # HTTP
    host: str = Field(default="0.0.0.0", alias="QH_FAUCET_HOST")  # noqa: S104
    port: int = Field(default=8080, alias="QH_FAUCET_PORT", ge=1, le=65535)

    # Observability
    log_level: str = Field(default="INFO", alias="QH_FAUCET_LOG_LEVEL")
    log_format: str = Field(default="json", alias="QH_FAUCET_LOG_FORMAT")

    @field_validator("validators", mode="before")
    @classmethod
    def _split_validators(cls, value):
        if isinstance(value, str):
            value = [item.strip() for item in value.split(",")]
        return [item for item in value if item]

    @field_validator("validators")
    @classmethod
    def _require_validators(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("At least one validator endpoint is required")
        return value

    def load_secret_key(self) -> SecretStr:
        """Resolve the faucet secret key from the environment or a mounted file.

        The inline value wins when both are set.

        Returns
        -------
        SecretStr
            The secret key material as configured (hex, with or without ``0x``).

        Raises
        ------
        ConfigurationError
            If no key is configured, or the key file is missing or empty.
        """
        if self.secret_key is not None:
            return self.secret_key
        if self.secret_key_file is None:
            raise ConfigurationError(
                "No secret key configured. Set QH_FAUCET_SECRET_KEY or QH_FAUCET_SECRET_KEY_FILE"
            )

        key_path = Path(self.secret_key_file).expanduser()
        if not key_path.exists():
            raise ConfigurationError(f"Secret key file not found: {self.secret_key_file}")
        content = key_path.read_text().strip()
        if not content:
            raise ConfigurationError(f"Secret key file is empty: {self.secret_key_file}")
        return SecretStr(content)

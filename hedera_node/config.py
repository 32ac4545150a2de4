"""Application configuration using pydantic-settings.

All configuration is loaded from environment variables with sensible defaults.
Secrets should NEVER be logged or exposed in error messages.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Any, Literal

import pydantic
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from hedera_node.errors import ConfigurationError, ValidationError
from hedera_node.models.keys import KeyAlgorithm
from hedera_node.models.ledger import AccountId

NetworkName = Literal["mainnet", "testnet", "previewnet"]

CREDENTIALS_ERROR = "Hedera credentials are not set up correctly."


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings are immutable after initialization.
    Secrets are wrapped in SecretStr to prevent accidental exposure.
    """

    model_config = SettingsConfigDict(
        env_prefix="HEDERA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Network gateway
    gateway_url: str = Field(
        default="http://localhost:5551",
        description="Base URL of the transaction submission gateway",
    )
    http_timeout: float = Field(default=10.0, gt=0, le=300)

    # Receipt polling
    receipt_timeout: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Maximum time to wait for a receipt in seconds",
    )
    receipt_poll_interval: float = Field(default=0.5, gt=0, le=60)
    receipt_max_poll_interval: float = Field(default=5.0, gt=0, le=120)
    receipt_backoff: float = Field(default=1.5, ge=1.0, le=10.0)

    # Transaction defaults
    max_transaction_fee_hbar: Decimal = Field(default=Decimal(2), ge=0)
    transaction_valid_duration: int = Field(default=120, ge=1, le=180)
    transaction_memo: str = Field(default="", max_length=100)

    # Node account ids per network
    mainnet_nodes: str = Field(
        default="0.0.3,0.0.4,0.0.5,0.0.6,0.0.7,0.0.8,0.0.9,0.0.10",
        description="Comma-separated node account ids",
    )
    testnet_nodes: str = Field(default="0.0.3,0.0.4,0.0.5,0.0.6,0.0.7,0.0.8,0.0.9")
    previewnet_nodes: str = Field(default="0.0.3,0.0.4,0.0.5,0.0.6")

    # Keys
    default_key_algorithm: KeyAlgorithm = Field(default=KeyAlgorithm.ED25519)
    reveal_new_account_private_key: bool = Field(
        default=True,
        description="Return generated private keys in account-create results",
    )

    # Batch execution
    max_concurrency: int = Field(default=1, ge=1, le=32)
    fail_fast: bool = Field(default=False)

    # Default operator (CLI)
    operator_account_id: str | None = Field(default=None)
    operator_private_key: SecretStr | None = Field(default=None)
    network: NetworkName = Field(default="testnet")

    # Server Configuration
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    debug: bool = Field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )

    @field_validator("mainnet_nodes", "testnet_nodes", "previewnet_nodes")
    @classmethod
    def validate_nodes(cls, v: str) -> str:
        """Validate node list format."""
        nodes = [n.strip() for n in v.split(",") if n.strip()]
        if not nodes:
            raise ValueError("At least one node account id must be specified")
        for node in nodes:
            try:
                AccountId.parse(node)
            except ValidationError as e:
                raise ValueError(e.message) from e
        return v

    def nodes_for(self, network: str) -> list[AccountId]:
        """Get the node account ids of a network.

        Raises:
            ConfigurationError: If the network is unknown
        """
        raw = getattr(self, f"{network}_nodes", None)
        if not isinstance(raw, str):
            raise ConfigurationError(f"Unknown network: {network}")
        return [AccountId.parse(n.strip()) for n in raw.split(",") if n.strip()]

    def get_masked_key(self, key_name: str) -> str:
        """Get a masked version of a secret for logging."""
        secret = getattr(self, key_name, None)
        if secret is None:
            return "<not set>"
        if isinstance(secret, SecretStr):
            return mask_secret(secret.get_secret_value())
        return mask_secret(str(secret))


class HederaCredentials(BaseModel):
    """Operator credentials supplied by the host platform.

    Example:
        creds = HederaCredentials.from_mapping(
            {"accountId": "0.0.1001", "privateKey": "302e...", "network": "testnet"}
        )
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    account_id: str = Field(min_length=1)
    private_key: SecretStr
    network: NetworkName = "testnet"

    @field_validator("private_key")
    @classmethod
    def validate_private_key(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("Private key must not be empty")
        return v

    @classmethod
    def from_mapping(cls, data: Any) -> "HederaCredentials":
        """Validate a raw credential mapping.

        Raises:
            ConfigurationError: If a field is missing or invalid. The
                message never includes the private key.
        """
        if not isinstance(data, dict):
            raise ConfigurationError(CREDENTIALS_ERROR)
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise ConfigurationError(CREDENTIALS_ERROR, {"fields": fields}) from e

    @classmethod
    def from_settings(cls, settings: Settings) -> "HederaCredentials":
        """Build credentials from the HEDERA_OPERATOR_* environment."""
        return cls.from_mapping(
            {
                "accountId": settings.operator_account_id or "",
                "privateKey": (
                    settings.operator_private_key.get_secret_value()
                    if settings.operator_private_key
                    else ""
                ),
                "network": settings.network,
            }
        )


def mask_secret(value: str, visible_chars: int = 4) -> str:
    """Mask a secret for safe logging.

    Shows only the first few characters followed by asterisks.

    Args:
        value: Secret value to mask
        visible_chars: Number of visible characters

    Returns:
        Masked string like "302e********"
    """
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * min(8, len(value) - visible_chars)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded once and cached for the application lifetime.
    Use dependency injection in FastAPI routes to access settings.
    """
    return Settings()

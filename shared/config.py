"""
Shared configuration management for the relay provider.
"""

import json
from typing import Annotated, Any, List, Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_NON_RETRYABLE_METHODS = [
    "icx_sendTransaction",
    "icx_sendTransactionAndWait",
    "eth_sendRawTransaction",
    "eth_sendTransaction",
]


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")


class RelayConfig(BaseConfig):
    """Relay network, target chain and AAT key material."""

    # Relay network
    relay_nodes: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["http://localhost:8081"])
    request_timeout_ms: int = Field(default=100000, gt=0)
    overall_timeout_ms: int = Field(default=10000000, gt=0)
    max_attempts: int = Field(default=5, ge=1)
    retry_base_delay_ms: int = Field(default=100, ge=0)
    retry_backoff_strategy: Literal["exponential", "linear", "fixed"] = "exponential"

    # Target chain (ICON testnet by default)
    chain_id: str = Field(default="d9d77bce50d80e70026bd240fb0759f08aab7aee63d0a6d98c545f2b5ae0a0b8")
    network_id: int = Field(default=80)
    path_prefix: str = Field(default="/api/v3")
    non_retryable_methods: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_NON_RETRYABLE_METHODS)
    )

    # Application Authentication Token
    aat_version: str = Field(default="0.0.1")
    client_public_key: Optional[str] = Field(default=None)
    application_public_key: Optional[str] = Field(default=None)
    application_private_key: Optional[SecretStr] = Field(default=None)

    @field_validator("relay_nodes", "non_retryable_methods", mode="before")
    @classmethod
    def _split_comma_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            if value.lstrip().startswith("["):
                return json.loads(value)
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("relay_nodes")
    @classmethod
    def _require_nodes(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("at least one relay node is required")
        return value

    @property
    def resolved_client_public_key(self) -> Optional[str]:
        """Client key defaults to the application key (self-issued AAT)."""
        return self.client_public_key or self.application_public_key


def get_config(**overrides: Any) -> RelayConfig:
    """Get relay configuration, with explicit overrides taking precedence."""
    return RelayConfig(**overrides)

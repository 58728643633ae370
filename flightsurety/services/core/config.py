"""
Configuration management for FlightSurety.
"""
import json
from decimal import Decimal
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

ETHER = 10 ** 18


def _validate_address(v: Optional[str]) -> Optional[str]:
    if v and not (isinstance(v, str) and len(v) == 42 and v.startswith("0x")):
        raise ValueError("Contract address must be a valid Ethereum address (0x...)")
    return v


class NetworkConfig(BaseModel):
    """Transport URL and contract endpoints of one network."""

    model_config = ConfigDict(populate_by_name=True)

    url: str
    app_address: Optional[str] = Field(default=None, alias="appAddress")
    data_address: Optional[str] = Field(default=None, alias="dataAddress")

    @field_validator("app_address", "data_address")
    @classmethod
    def validate_contract_address(cls, v):
        """Validate contract addresses are proper Ethereum addresses."""
        return _validate_address(v)


def load_network_config(path: Union[str, Path], network: str = "localhost") -> NetworkConfig:
    """Read one network entry from a ``config.json`` keyed by network name."""
    config_file = Path(path)
    if not config_file.is_file():
        raise FileNotFoundError(f"Network config not found: {config_file}")
    with config_file.open("r", encoding="utf-8") as fp:
        data = json.load(fp)
    if network not in data:
        raise KeyError(f"Network {network!r} not defined in {config_file}")
    return NetworkConfig.model_validate(data[network])


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Network Configuration
    network: str = "localhost"
    network_config_path: Optional[str] = None
    rpc_url: str = "http://127.0.0.1:8545"
    app_contract_address: Optional[str] = None
    data_contract_address: Optional[str] = None
    gas: int = 6700000
    oracle_private_keys: List[str] = []

    # Governance
    funding_threshold: int = 10 * ETHER
    vote_ratio: float = 0.5
    multiparty_min_airlines: int = 4

    # Oracle consensus
    registration_fee: int = 1 * ETHER
    min_responses: int = 2
    index_space: int = 10
    request_ttl: Optional[float] = None

    # Insurance
    payout_multiplier: Decimal = Decimal("1.5")
    max_insurance: Optional[int] = 1 * ETHER

    # Oracle server
    oracle_count: int = 20
    oracle_account_offset: int = 10
    oracle_poll_interval: float = 1.0
    oracle_cursor_dir: Optional[str] = None
    server_host: str = "0.0.0.0"
    server_port: int = 3000

    # Logging Configuration
    log_level: str = "INFO"
    log_file_enabled: bool = False
    log_dir: str = "/tmp"

    @field_validator("app_contract_address", "data_contract_address")
    @classmethod
    def validate_contract_address(cls, v):
        """Validate contract addresses are proper Ethereum addresses."""
        return _validate_address(v)

    @field_validator("oracle_private_keys")
    @classmethod
    def validate_private_keys(cls, v):
        """Validate oracle signing keys are 32-byte hex strings."""
        for key in v:
            raw = key[2:] if key.startswith("0x") else key
            if len(raw) != 64:
                raise ValueError("Private keys must be 32-byte hex strings")
            try:
                int(raw, 16)
            except ValueError as e:
                raise ValueError("Private keys must be 32-byte hex strings") from e
        return v

    @field_validator("min_responses", "index_space", "multiparty_min_airlines")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("vote_ratio")
    @classmethod
    def validate_ratio(cls, v):
        if not 0 < v <= 1:
            raise ValueError("vote_ratio must be within (0, 1]")
        return v

    def network_config(self) -> NetworkConfig:
        """Resolve the active network from the JSON file or from plain settings."""
        if self.network_config_path:
            return load_network_config(self.network_config_path, self.network)
        return NetworkConfig(
            url=self.rpc_url,
            app_address=self.app_contract_address,
            data_address=self.data_contract_address,
        )

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "env_prefix": "FLIGHTSURETY_",
        "extra": "ignore",
    }


# Create global settings instance
settings = Settings()


def get_settings() -> Settings:
    return settings


__all__ = ["ETHER", "NetworkConfig", "Settings", "get_settings", "load_network_config", "settings"]

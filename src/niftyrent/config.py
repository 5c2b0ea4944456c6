"""Configuration management for niftyrent."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from web3 import Web3

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

HEX_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


@dataclass(frozen=True)
class NetworkProfile:
    """Defaults for a named network."""

    chain_id: int
    rpc_url: str
    rental_proxies: tuple[str, ...]


# Placeholder rental proxy addresses, not published deployments. Set the
# real ones with NIFTYRENT_RENTAL_PROXIES or rental_proxies in config.toml.
NETWORKS: dict[str, NetworkProfile] = {
    "mainnet": NetworkProfile(
        chain_id=1,
        rpc_url="https://ethereum-rpc.publicnode.com",
        rental_proxies=("0x4e1f41613c9084fdb9e34e11fae9412427480e56",),
    ),
    "testnet": NetworkProfile(
        chain_id=11155111,
        rpc_url="https://ethereum-sepolia-rpc.publicnode.com",
        rental_proxies=("0x6a3a8ee4a6cf9b6c5b30b0bbd4e8a0f7bd1e6c2a",),
    ),
}


def normalize_account_id(value: str) -> str:
    """Checksum hex addresses so they compare equal to contract results.

    Anything that is not a 20-byte hex address is returned unchanged.
    """
    value = value.strip()
    if HEX_ADDRESS_RE.match(value):
        return Web3.to_checksum_address(value)
    return value


class NiftyRentConfig(BaseSettings):
    """Resolver configuration."""

    model_config = SettingsConfigDict(env_prefix="NIFTYRENT_")

    # Network name, selects default RPC endpoint and rental proxies
    network: str = "testnet"

    # Ethereum RPC URL (defaults to the network's public endpoint)
    rpc_url: Optional[str] = None

    # Default NFT contract queried when no address is passed per call
    nft_contract: Optional[str] = None

    # Contracts trusted to hold tokens on behalf of borrowers
    rental_proxies: Optional[list[str]] = None

    # Upper bound for each remote round trip (seconds)
    request_timeout: Optional[float] = 30.0

    @field_validator("network")
    @classmethod
    def validate_network(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in NETWORKS:
            raise ValueError(
                f"Unknown network: {v} (expected one of {', '.join(sorted(NETWORKS))})"
            )
        return v

    @field_validator("nft_contract")
    @classmethod
    def validate_nft_contract(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return normalize_account_id(v)

    @field_validator("request_timeout")
    @classmethod
    def validate_request_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    @model_validator(mode="after")
    def apply_network_defaults(self) -> "NiftyRentConfig":
        profile = self.profile
        if self.rpc_url is None:
            self.rpc_url = profile.rpc_url
        proxies = self.rental_proxies
        if proxies is None:
            proxies = list(profile.rental_proxies)
        self.rental_proxies = [normalize_account_id(p) for p in proxies]
        return self

    @property
    def profile(self) -> NetworkProfile:
        """Defaults of the configured network."""
        return NETWORKS[self.network]

    @property
    def chain_id(self) -> int:
        return self.profile.chain_id

    @classmethod
    def from_toml(cls, path: Path) -> "NiftyRentConfig":
        """Load configuration from the [niftyrent] table of a TOML file."""
        if not path.exists():
            return cls()

        with open(path, "rb") as f:
            data = tomllib.load(f)

        return cls(**data.get("niftyrent", {}))


# Default config path
DEFAULT_CONFIG_PATH = Path("/etc/niftyrent/config.toml")


def load_config(path: Path | None = None) -> NiftyRentConfig:
    """Load configuration from file or defaults."""
    config_path = path or DEFAULT_CONFIG_PATH
    return NiftyRentConfig.from_toml(config_path)

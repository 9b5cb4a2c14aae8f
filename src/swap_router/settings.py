"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    BASE_ASSETS,
    DEFAULT_BASE_RPC_URL,
    DEFAULT_BRIDGE_TOKENS,
    DEFAULT_MAINNET_RPC_URL,
    DEFAULT_SEPOLIA_RPC_URL,
    ETH_MAINNET_ASSETS,
    SEPOLIA_ASSETS,
    TOKEN_METADATA,
    UNISWAP_V2_FACTORIES,
    NetworkAssets,
)

load_dotenv()


class Network(str, Enum):
    MAINNET = "mainnet"
    SEPOLIA = "sepolia"
    BASE = "base"


NETWORK_RPC_DEFAULTS = {
    Network.MAINNET: DEFAULT_MAINNET_RPC_URL,
    Network.SEPOLIA: DEFAULT_SEPOLIA_RPC_URL,
    Network.BASE: DEFAULT_BASE_RPC_URL,
}

NETWORK_ASSETS: dict[Network, NetworkAssets] = {
    Network.MAINNET: ETH_MAINNET_ASSETS,
    Network.SEPOLIA: SEPOLIA_ASSETS,
    Network.BASE: BASE_ASSETS,
}


def _redact_url(url: str) -> str:
    """Hide path, query and userinfo, which commonly embed provider API keys."""
    parts = urlsplit(url)
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    if parts.path.strip("/") or parts.query or parts.username:
        return f"{parts.scheme}://{host}/***redacted***"
    return url


class TomlConfigSource(PydanticBaseSettingsSource):
    """Reads settings from a TOML file, top level or under ``[swap_router]``.

    The file is ``$SWAP_ROUTER_CONFIG`` when set, otherwise the first existing
    of ``./swap-router.toml`` and ``~/.config/swap-router/config.toml``. A
    missing file yields no values.
    """

    def _config_path(self) -> Path | None:
        explicit = os.environ.get("SWAP_ROUTER_CONFIG")
        if explicit:
            return Path(explicit)
        for candidate in (
            Path("swap-router.toml"),
            Path.home() / ".config" / "swap-router" / "config.toml",
        ):
            if candidate.exists():
                return candidate
        return None

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        path = self._config_path()
        if path is None or not path.exists():
            return {}

        with path.open("rb") as f:
            data = tomllib.load(f)
        body = data.get("swap_router", data)
        if not isinstance(body, dict):
            raise ValueError(f"[swap_router] in {path} must be a table")
        return body


class RouterSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with SWAP_ROUTER_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- network ---
    network: Network = Network.MAINNET
    rpc_url: str | None = None

    # --- pool cache ---
    cache_ttl_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Age after which cached reserves are refetched.",
    )
    pool_batch_size: int = Field(
        default=5,
        gt=0,
        description="Number of pools fetched concurrently by get_multiple_pools.",
    )

    # --- route search policy ---
    small_amount_threshold: float = Field(default=10.0, ge=0)
    split_amount_threshold: float = Field(default=1000.0, ge=0)
    max_search_iterations: int = Field(default=10, gt=0)
    price_impact_tolerance: float = Field(
        default=0.1,
        gt=0,
        description="Binary search stops once impact is this close (percentage points) to the ceiling.",
    )
    direct_route_comfort_impact: float = Field(default=1.0, ge=0)
    min_viable_fraction: float = Field(
        default=0.1,
        gt=0,
        le=1.0,
        description="A shrunk hop smaller than this fraction of the requested amount is rejected.",
    )
    split_percentage: int = Field(default=50, gt=0, lt=100)
    default_max_slippage: float = Field(default=1.0, gt=0, lt=100.0)
    bridge_tokens: list[str] = Field(
        default_factory=lambda: list(DEFAULT_BRIDGE_TOKENS)
    )

    # --- RPC settings ---
    rpc_timeout_seconds: float = Field(default=10.0, gt=0)
    quote_timeout_seconds: float | None = 30.0
    rpc_max_concurrent_calls: int = Field(default=5, gt=0)
    rpc_max_tries: int = Field(default=3, gt=0)
    rpc_delay: float = 0.0
    rpc_jitter: float = 0.0

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="SWAP_ROUTER_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator("bridge_tokens")
    @classmethod
    def validate_bridge_tokens(cls, v: list[str]) -> list[str]:
        """Bridge tokens are referenced by symbol and must be known."""
        normalized = [symbol.upper() for symbol in v]
        unknown = [symbol for symbol in normalized if symbol not in TOKEN_METADATA]
        if unknown:
            raise ValueError(
                f"Unknown bridge token(s): {', '.join(unknown)}. "
                f"Expected a subset of {', '.join(TOKEN_METADATA)}"
            )
        return normalized

    @model_validator(mode="after")
    def validate_threshold_ordering(self) -> "RouterSettings":
        """Validate that the small-amount cutoff sits below the split cutoff."""
        if self.small_amount_threshold > self.split_amount_threshold:
            raise ValueError(
                f"small_amount_threshold ({self.small_amount_threshold}) "
                f"must not exceed split_amount_threshold ({self.split_amount_threshold})"
            )
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Explicit precedence: CLI > ENV > .env > CONFIG FILE."""
        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,
            TomlConfigSource(settings_cls),  # CONFIG (lowest)
            file_secret_settings,  # optional secrets dir
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a JSON-friendly dict with RPC credentials redacted."""
        data = self.model_dump(mode="json")
        if self.rpc_url:
            data["rpc_url"] = _redact_url(self.rpc_url)
        return data

    @property
    def rpc_url_required(self) -> str:
        """Get rpc_url, falling back to the network's public endpoint."""
        return self.rpc_url or NETWORK_RPC_DEFAULTS[self.network]

    @property
    def using_default_rpc(self) -> bool:
        return self.rpc_url is None

    @property
    def assets(self) -> NetworkAssets:
        """Well-known token addresses for the configured network."""
        return NETWORK_ASSETS[self.network]

    @property
    def wrapped_native_address(self) -> str:
        return self.assets["WETH"]

    @property
    def uniswap_v2_factory(self) -> str:
        return UNISWAP_V2_FACTORIES[self.network.value]

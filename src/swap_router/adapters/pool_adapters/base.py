from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ...clients.rpc import ThrottledRpc
from ...domain import PoolProvider
from ...settings import RouterSettings


@dataclass(frozen=True)
class PairState:
    """Raw on-chain state of a two-token pool, in the pool's own slot order."""

    token0: str
    token1: str
    reserve0: int
    reserve1: int


class BasePoolAdapter(ABC):
    """Abstract base class for AMM pool adapters."""

    def __init__(self, config: RouterSettings, rpc: ThrottledRpc | None = None):
        """Initialize the adapter with configuration and an optional shared RPC throttle."""
        self.config = config
        self._rpc = rpc or ThrottledRpc(config)

    @property
    @abstractmethod
    def provider(self) -> PoolProvider:
        """Return the provider this adapter reads pools from."""
        ...

    @abstractmethod
    async def get_pair_address(self, token_a: str, token_b: str) -> str | None:
        """Resolve the pool address for a pair, or None if no pool exists."""
        ...

    @abstractmethod
    async def fetch_pair_state(self, pair_address: str) -> PairState:
        """Read reserves and slot tokens for a pool."""
        ...

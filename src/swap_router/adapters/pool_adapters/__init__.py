from __future__ import annotations

from ...clients.rpc import ThrottledRpc
from ...domain import PoolProvider
from ...settings import RouterSettings
from .base import BasePoolAdapter, PairState
from .uniswap_v2 import UniswapV2Adapter

# SushiSwap and Uniswap V3 are declared providers without an adapter yet.
POOL_ADAPTERS: dict[PoolProvider, type[BasePoolAdapter]] = {
    PoolProvider.UNISWAP_V2: UniswapV2Adapter,
}


def build_pool_adapters(
    config: RouterSettings, rpc: ThrottledRpc | None = None
) -> dict[PoolProvider, BasePoolAdapter]:
    """Instantiate every registered adapter, sharing one RPC throttle."""
    shared_rpc = rpc or ThrottledRpc(config)
    return {
        provider: adapter_cls(config, rpc=shared_rpc)
        for provider, adapter_cls in POOL_ADAPTERS.items()
    }


__all__ = [
    "POOL_ADAPTERS",
    "BasePoolAdapter",
    "PairState",
    "UniswapV2Adapter",
    "build_pool_adapters",
]

from __future__ import annotations

import asyncio

from eth_typing import URI
from web3 import Web3

from ...abi import load_uniswap_v2_factory_abi, load_uniswap_v2_pair_abi
from ...clients.rpc import ThrottledRpc
from ...constants import ZERO_ADDRESS
from ...domain import PoolProvider
from ...logger import get_logger
from ...settings import RouterSettings
from .base import BasePoolAdapter, PairState

logger = get_logger(__name__)


class UniswapV2Adapter(BasePoolAdapter):
    """Adapter for Uniswap V2 pairs resolved through the factory contract."""

    def __init__(self, config: RouterSettings, rpc: ThrottledRpc | None = None):
        super().__init__(config, rpc)
        self.w3 = Web3(
            Web3.HTTPProvider(
                URI(config.rpc_url_required),
                request_kwargs={"timeout": config.rpc_timeout_seconds},
            )
        )
        self.factory_address = Web3.to_checksum_address(config.uniswap_v2_factory)

    @property
    def provider(self) -> PoolProvider:
        return PoolProvider.UNISWAP_V2

    def _factory(self):
        return self.w3.eth.contract(
            address=self.factory_address, abi=load_uniswap_v2_factory_abi()
        )

    def _pair(self, pair_address: str):
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(pair_address),
            abi=load_uniswap_v2_pair_abi(),
        )

    async def get_pair_address(self, token_a: str, token_b: str) -> str | None:
        """Look up the pair via ``factory.getPair``.

        Returns:
            The checksummed pair address, or None when the factory returns
            the zero address.
        """
        call = self._factory().functions.getPair(
            Web3.to_checksum_address(token_a), Web3.to_checksum_address(token_b)
        ).call
        pair_address = await self._rpc.call(call)
        if not pair_address or pair_address.lower() == ZERO_ADDRESS:
            logger.debug("No Uniswap V2 pair for %s / %s", token_a, token_b)
            return None
        return Web3.to_checksum_address(pair_address)

    async def fetch_pair_state(self, pair_address: str) -> PairState:
        pair = self._pair(pair_address)
        reserves, token0, token1 = await asyncio.gather(
            self._rpc.call(pair.functions.getReserves().call),
            self._rpc.call(pair.functions.token0().call),
            self._rpc.call(pair.functions.token1().call),
        )
        reserve0, reserve1, _block_timestamp_last = reserves
        logger.debug(
            "Pair %s reserves: %s=%d %s=%d",
            pair_address,
            token0,
            reserve0,
            token1,
            reserve1,
        )
        return PairState(
            token0=token0,
            token1=token1,
            reserve0=int(reserve0),
            reserve1=int(reserve1),
        )

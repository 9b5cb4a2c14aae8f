"""Tests for the Uniswap V2 pool adapter against a mocked web3 contract."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from conftest import TKA, WETH, FakePoolAdapter
from swap_router.adapters.pool_adapters import (
    POOL_ADAPTERS,
    UniswapV2Adapter,
    build_pool_adapters,
)
from swap_router.clients.rpc import ThrottledRpc
from swap_router.constants import ZERO_ADDRESS
from swap_router.domain import PoolProvider

PAIR = "0xA478c2975Ab1Ea89e8196811F51A7B7Ade33eB11"


def _adapter(settings, contract: MagicMock) -> UniswapV2Adapter:
    adapter = UniswapV2Adapter(settings, rpc=ThrottledRpc(settings))
    adapter.w3 = MagicMock()
    adapter.w3.eth.contract.return_value = contract
    return adapter


@pytest.mark.asyncio
async def test_get_pair_address_checksums_result(settings):
    contract = MagicMock()
    contract.functions.getPair.return_value.call.return_value = PAIR.lower()
    adapter = _adapter(settings, contract)

    result = await adapter.get_pair_address(TKA.address, WETH.address.lower())

    assert result == PAIR
    contract.functions.getPair.assert_called_once_with(TKA.address, WETH.address)
    assert adapter.w3.eth.contract.call_args.kwargs["address"] == adapter.factory_address


@pytest.mark.asyncio
async def test_get_pair_address_none_for_zero_address(settings):
    contract = MagicMock()
    contract.functions.getPair.return_value.call.return_value = ZERO_ADDRESS
    adapter = _adapter(settings, contract)

    assert await adapter.get_pair_address(TKA.address, WETH.address) is None


@pytest.mark.asyncio
async def test_fetch_pair_state_reads_slots(settings):
    contract = MagicMock()
    contract.functions.getReserves.return_value.call.return_value = (10, 20, 1_700_000_000)
    contract.functions.token0.return_value.call.return_value = WETH.address
    contract.functions.token1.return_value.call.return_value = TKA.address
    adapter = _adapter(settings, contract)

    state = await adapter.fetch_pair_state(PAIR)

    assert state.token0 == WETH.address
    assert state.token1 == TKA.address
    assert (state.reserve0, state.reserve1) == (10, 20)


def test_factory_follows_network(settings):
    adapter = UniswapV2Adapter(settings)

    assert adapter.provider is PoolProvider.UNISWAP_V2
    assert adapter.factory_address == "0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f"


def test_build_pool_adapters_shares_rpc(settings):
    rpc = ThrottledRpc(settings)
    adapters = build_pool_adapters(settings, rpc=rpc)

    assert set(adapters) == set(POOL_ADAPTERS) == {PoolProvider.UNISWAP_V2}
    assert adapters[PoolProvider.UNISWAP_V2]._rpc is rpc


def test_build_pool_adapters_accepts_any_registered_adapter(settings, monkeypatch):
    monkeypatch.setitem(POOL_ADAPTERS, PoolProvider.SUSHISWAP, FakePoolAdapter)
    rpc = ThrottledRpc(settings)

    adapters = build_pool_adapters(settings, rpc=rpc)

    assert isinstance(adapters[PoolProvider.SUSHISWAP], FakePoolAdapter)
    assert adapters[PoolProvider.SUSHISWAP]._rpc is rpc
    assert adapters[PoolProvider.UNISWAP_V2]._rpc is rpc

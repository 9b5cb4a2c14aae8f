"""Tests for TokenRegistry symbol and address resolution."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from web3.exceptions import BadFunctionCallOutput

from swap_router.clients.rpc import ThrottledRpc
from swap_router.settings import Network, RouterSettings
from swap_router.tokens import TokenRegistry

UNI = "0x1f9840a85d5aF5bf1D1762F925BDADdC4201F984"


def _erc20(symbol="UNI", name="Uniswap", decimals=18) -> MagicMock:
    contract = MagicMock()
    contract.functions.symbol.return_value.call.return_value = symbol
    contract.functions.name.return_value.call.return_value = name
    contract.functions.decimals.return_value.call.return_value = decimals
    return contract


def _registry(settings, contract: MagicMock) -> TokenRegistry:
    w3 = MagicMock()
    w3.eth.contract.return_value = contract
    return TokenRegistry(settings, w3=w3, rpc=ThrottledRpc(settings))


@pytest.mark.asyncio
async def test_resolves_known_symbols_case_insensitively(settings):
    registry = TokenRegistry(settings)

    usdc = await registry.resolve("usdc")

    assert usdc.decimals == 6
    assert usdc.address == settings.assets["USDC"]
    assert await registry.resolve(usdc.address.lower()) is usdc


def test_bridge_tokens_carry_real_decimals(settings):
    registry = TokenRegistry(settings)

    decimals = {token.symbol: token.decimals for token in registry.bridge_tokens()}

    assert decimals == {"WETH": 18, "USDC": 6, "DAI": 18, "USDT": 6, "WBTC": 8}


def test_bridge_tokens_skip_tokens_missing_on_network():
    registry = TokenRegistry(RouterSettings(network=Network.SEPOLIA))

    assert [token.symbol for token in registry.bridge_tokens()] == ["WETH", "USDC"]


@pytest.mark.asyncio
async def test_unknown_symbol_raises(settings):
    with pytest.raises(ValueError, match="Unknown token symbol 'NOPE'"):
        await TokenRegistry(settings).resolve("NOPE")


@pytest.mark.asyncio
async def test_unknown_address_read_from_chain_and_cached(settings):
    contract = _erc20()
    registry = _registry(settings, contract)

    token = await registry.resolve(UNI.lower())

    assert token.address == UNI
    assert (token.symbol, token.name, token.decimals) == ("UNI", "Uniswap", 18)
    assert await registry.resolve(UNI) is token
    assert registry.known("uni") is token
    assert contract.functions.decimals.call_count == 1


@pytest.mark.asyncio
async def test_non_erc20_address_raises_value_error(settings):
    contract = _erc20()
    contract.functions.decimals.return_value.call.side_effect = BadFunctionCallOutput(
        "Could not decode contract function call"
    )
    registry = _registry(settings, contract)

    with pytest.raises(ValueError, match="does not look like an ERC20 token"):
        await registry.resolve(UNI)

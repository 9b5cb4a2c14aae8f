"""Shared fakes and fixtures for swap-router tests."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

import pytest

from swap_router.adapters.pool_adapters.base import BasePoolAdapter, PairState
from swap_router.domain import PoolProvider, Token
from swap_router.pools.service import PoolDataService
from swap_router.routing.optimizer import RouteOptimizerService
from swap_router.settings import RouterSettings
from swap_router.tokens import TokenRegistry
from swap_router.units import to_base_units

TKA = Token("0x1111111111111111111111111111111111111111", "TKA", "Token A", 18)
TKB = Token("0x2222222222222222222222222222222222222222", "TKB", "Token B", 18)
TKC = Token("0x3333333333333333333333333333333333333333", "TKC", "Token C", 18)
WETH = Token("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", "WETH", "Wrapped Ether", 18)
USDC = Token("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", "USDC", "USD Coin", 6)


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePoolAdapter(BasePoolAdapter):
    """In-memory pool adapter that records how often the chain was read."""

    def __init__(self, config: RouterSettings, latency: float = 0.0, rpc=None):
        super().__init__(config, rpc)
        self.latency = latency
        self.pairs: dict[frozenset[str], str] = {}
        self.states: dict[str, PairState] = {}
        self.failing: set[frozenset[str]] = set()
        self.pair_lookups = 0
        self.state_reads = 0
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def provider(self) -> PoolProvider:
        return PoolProvider.UNISWAP_V2

    def add_pool(self, token0: Token, reserve0, token1: Token, reserve1) -> str:
        """Register a pool with reserves given in whole tokens."""
        address = f"0x{len(self.states) + 1:040x}"
        self.pairs[frozenset((token0.key, token1.key))] = address
        self.states[address] = PairState(
            token0=token0.address,
            token1=token1.address,
            reserve0=to_base_units(Decimal(str(reserve0)), token0.decimals),
            reserve1=to_base_units(Decimal(str(reserve1)), token1.decimals),
        )
        return address

    def set_reserves(self, address: str, reserve0: int, reserve1: int) -> None:
        state = self.states[address]
        self.states[address] = PairState(state.token0, state.token1, reserve0, reserve1)

    def fail_pair(self, token_a: Token, token_b: Token) -> None:
        self.failing.add(frozenset((token_a.key, token_b.key)))

    async def get_pair_address(self, token_a: str, token_b: str) -> str | None:
        self.pair_lookups += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.latency)
            pair = frozenset((token_a.lower(), token_b.lower()))
            if pair in self.failing:
                raise ConnectionError("connection reset by peer")
            return self.pairs.get(pair)
        finally:
            self.in_flight -= 1

    async def fetch_pair_state(self, pair_address: str) -> PairState:
        self.state_reads += 1
        await asyncio.sleep(0)
        return self.states[pair_address]


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the TOML source at a missing file so local configs never leak in."""
    monkeypatch.setenv("SWAP_ROUTER_CONFIG", str(tmp_path / "absent.toml"))


@pytest.fixture(autouse=True)
def detach_console_handlers():
    """Drop handlers installed by setup_logging so they never outlive their stream."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)


@pytest.fixture
def settings() -> RouterSettings:
    return RouterSettings(rpc_url="http://127.0.0.1:8545", quote_timeout_seconds=5)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def adapter(settings) -> FakePoolAdapter:
    return FakePoolAdapter(settings)


@pytest.fixture
def pool_service(settings, adapter, clock) -> PoolDataService:
    return PoolDataService(settings, {PoolProvider.UNISWAP_V2: adapter}, clock=clock)


@pytest.fixture
def registry(settings) -> TokenRegistry:
    tokens = TokenRegistry(settings)
    for token in (TKA, TKB, TKC):
        tokens.register(token)
    return tokens


@pytest.fixture
def optimizer(pool_service, registry, settings) -> RouteOptimizerService:
    return RouteOptimizerService(pool_service, registry, settings)

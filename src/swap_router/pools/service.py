from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Mapping, Sequence, Union

from ..adapters.pool_adapters.base import BasePoolAdapter
from ..domain import LiquidityPool, PoolProvider, PoolReserves, Token, pair_cache_key
from ..errors import (
    PairNotFoundError,
    PoolDataError,
    SwapRouterError,
    UnsupportedProviderError,
)
from ..logger import get_logger
from ..settings import RouterSettings
from ..units import from_base_units, to_base_units
from .amm_math import get_amount_in, get_amount_out, price_impact, search_trade_size

logger = get_logger(__name__)

# Fee rate per provider. V3 fees are tier specific; 0.3% is the common tier.
PROVIDER_FEES: dict[PoolProvider, float] = {
    PoolProvider.UNISWAP_V2: 0.003,
    PoolProvider.SUSHISWAP: 0.003,
    PoolProvider.UNISWAP_V3: 0.003,
}

VERY_LIQUID_THRESHOLD = 1_000_000
MODERATELY_LIQUID_THRESHOLD = 100_000

PairRequest = Union[tuple[Token, Token], tuple[Token, Token, PoolProvider]]


@dataclass(frozen=True)
class PoolFetchOutcome:
    """Result of fetching one pair in a batch."""

    key: str
    token_a: Token
    token_b: Token
    pool: LiquidityPool | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.pool is not None


class PoolDataService:
    """Fetches, caches and analyses AMM pool reserves.

    Reserves are cached per unordered pair and provider for
    ``cache_ttl_seconds``. Derived ``LiquidityPool`` objects are cached
    alongside and only served while the reserves they were built from are
    still the live cache entry.
    """

    def __init__(
        self,
        config: RouterSettings,
        adapters: Mapping[PoolProvider, BasePoolAdapter],
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self._adapters = dict(adapters)
        self._clock = clock
        self._reserves_cache: dict[str, PoolReserves] = {}
        self._pool_cache: dict[str, tuple[PoolReserves, LiquidityPool]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @staticmethod
    def _coerce_provider(provider: PoolProvider | str) -> PoolProvider:
        try:
            return PoolProvider(provider)
        except ValueError:
            raise UnsupportedProviderError(str(provider)) from None

    def _adapter_for(self, provider: PoolProvider) -> BasePoolAdapter:
        adapter = self._adapters.get(provider)
        if adapter is None:
            raise UnsupportedProviderError(provider.value)
        return adapter

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def _live_reserves(self, key: str) -> PoolReserves | None:
        entry = self._reserves_cache.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp >= self.config.cache_ttl_seconds:
            logger.debug("Reserves for %s expired, refetching", key)
            return None
        return entry

    @staticmethod
    def _oriented(reserves: PoolReserves, token_a: str) -> PoolReserves:
        if reserves.token_a.lower() == token_a.lower():
            return reserves
        return reserves.flipped()

    async def get_pool_reserves(
        self,
        token_a: str,
        token_b: str,
        provider: PoolProvider = PoolProvider.UNISWAP_V2,
    ) -> PoolReserves:
        """Return reserves for a pair, ordered as ``(token_a, token_b)``.

        Serves the cached snapshot while it is younger than the TTL, otherwise
        reads the pool on-chain and replaces the cache entry.

        Raises:
            UnsupportedProviderError: If no adapter exists for ``provider``.
            PairNotFoundError: If the provider has no pool for the pair.
            PoolDataError: If the on-chain read fails.
        """
        provider = self._coerce_provider(provider)
        key = pair_cache_key(token_a, token_b, provider)

        cached = self._live_reserves(key)
        if cached is not None:
            return self._oriented(cached, token_a)

        adapter = self._adapter_for(provider)

        async with self._lock_for(key):
            # Another task may have filled the entry while we waited.
            cached = self._live_reserves(key)
            if cached is not None:
                return self._oriented(cached, token_a)

            try:
                pair_address = await adapter.get_pair_address(token_a, token_b)
                if pair_address is None:
                    raise PairNotFoundError(token_a, token_b, provider.value)
                state = await adapter.fetch_pair_state(pair_address)
            except SwapRouterError:
                raise
            except Exception as e:
                logger.warning(
                    "Error fetching pool reserves for %s / %s: %s", token_a, token_b, e
                )
                raise PoolDataError(
                    f"Failed to fetch pool reserves for {token_a} and {token_b}: {e}",
                    token_a,
                    token_b,
                ) from e

            if state.token0.lower() == token_a.lower():
                reserve_a, reserve_b = state.reserve0, state.reserve1
            elif state.token1.lower() == token_a.lower():
                reserve_a, reserve_b = state.reserve1, state.reserve0
            else:
                raise PoolDataError(
                    f"Pool {pair_address} holds {state.token0}/{state.token1}, "
                    f"not {token_a}/{token_b}",
                    token_a,
                    token_b,
                )

            reserves = PoolReserves(
                token_a=token_a,
                token_b=token_b,
                reserve_a=reserve_a,
                reserve_b=reserve_b,
                pair_address=pair_address,
                provider=provider,
                timestamp=self._clock(),
            )
            self._reserves_cache[key] = reserves
            return reserves

    async def get_pool_data(
        self,
        token_a: Token,
        token_b: Token,
        provider: PoolProvider = PoolProvider.UNISWAP_V2,
    ) -> LiquidityPool:
        """Return reserves enriched with fee, liquidity and token metadata."""
        provider = self._coerce_provider(provider)
        reserves = await self.get_pool_reserves(token_a.address, token_b.address, provider)
        key = pair_cache_key(token_a.address, token_b.address, provider)

        cached = self._pool_cache.get(key)
        if cached is not None:
            source, pool = cached
            if self._reserves_cache.get(key) is source:
                return pool.oriented(token_a)

        human_a = from_base_units(reserves.reserve_a, token_a.decimals)
        human_b = from_base_units(reserves.reserve_b, token_b.decimals)
        liquidity = float((human_a * human_b).sqrt())

        pool = LiquidityPool(
            token_a=token_a,
            token_b=token_b,
            reserves=reserves,
            fee=PROVIDER_FEES[provider],
            liquidity=liquidity,
            provider=provider,
            pair_address=reserves.pair_address,
            last_updated=datetime.fromtimestamp(
                reserves.timestamp, tz=timezone.utc
            ).isoformat(),
        )

        source = self._reserves_cache.get(key)
        if source is not None:
            self._pool_cache[key] = (source, pool)
        return pool

    async def fetch_pools(self, pairs: Sequence[PairRequest]) -> list[PoolFetchOutcome]:
        """Fetch many pools in batches of ``pool_batch_size``.

        A failing pair becomes an outcome with ``error`` set; it never aborts
        the rest of the batch.
        """
        outcomes: list[PoolFetchOutcome] = []
        batch_size = self.config.pool_batch_size

        for start in range(0, len(pairs), batch_size):
            batch = [
                (pair[0], pair[1], pair[2] if len(pair) > 2 else PoolProvider.UNISWAP_V2)
                for pair in pairs[start : start + batch_size]
            ]
            results = await asyncio.gather(
                *[self.get_pool_data(a, b, provider) for a, b, provider in batch],
                return_exceptions=True,
            )

            for (token_a, token_b, provider), result in zip(batch, results):
                key = pair_cache_key(token_a.address, token_b.address, provider)
                if isinstance(result, LiquidityPool):
                    outcomes.append(
                        PoolFetchOutcome(key=key, token_a=token_a, token_b=token_b, pool=result)
                    )
                elif isinstance(result, Exception):
                    logger.warning(
                        "Error fetching pool for %s-%s: %s",
                        token_a.symbol,
                        token_b.symbol,
                        result,
                    )
                    outcomes.append(
                        PoolFetchOutcome(key=key, token_a=token_a, token_b=token_b, error=result)
                    )
                else:
                    # CancelledError and other BaseExceptions must not be swallowed.
                    raise result

        return outcomes

    async def get_multiple_pools(
        self, pairs: Sequence[PairRequest]
    ) -> dict[str, LiquidityPool]:
        """Fetch many pools, keyed by pair cache key. Failed pairs are skipped."""
        outcomes = await self.fetch_pools(pairs)
        return {outcome.key: outcome.pool for outcome in outcomes if outcome.pool is not None}

    def calculate_price_impact(
        self,
        pool: LiquidityPool,
        input_amount: Decimal | str,
        input_token: Token,
    ) -> float:
        """Price impact in percent of selling ``input_amount`` of ``input_token``."""
        reserve_in, reserve_out = pool.sides(input_token)
        amount_in = to_base_units(input_amount, input_token.decimals)
        return price_impact(amount_in, reserve_in, reserve_out)

    def calculate_optimal_trade_size(
        self,
        pool: LiquidityPool,
        max_input_amount: Decimal | str,
        input_token: Token,
        max_price_impact: float = 1.0,
    ) -> Decimal:
        """Largest amount up to ``max_input_amount`` whose impact fits the ceiling.

        Returns ``max_input_amount`` unchanged when it already fits, otherwise a
        binary-search approximation within ``price_impact_tolerance`` points.
        """
        max_amount = Decimal(str(max_input_amount))
        reserve_in, reserve_out = pool.sides(input_token)
        max_base = to_base_units(max_amount, input_token.decimals)

        # Selling reserve_in or more costs at least 50% impact.
        search_limit = min(max_base, reserve_in) if max_price_impact < 50 else max_base

        size = search_trade_size(
            search_limit,
            lambda amount: price_impact(amount, reserve_in, reserve_out),
            max_price_impact,
            tolerance=self.config.price_impact_tolerance,
            max_iterations=self.config.max_search_iterations,
        )
        if size == max_base:
            return max_amount
        return from_base_units(size, input_token.decimals)

    def get_amount_out(
        self,
        pool: LiquidityPool,
        input_amount: Decimal | str,
        input_token: Token,
    ) -> Decimal:
        """Constant-product output, in human units of the opposite token."""
        reserve_in, reserve_out = pool.sides(input_token)
        output_token = pool.other(input_token)
        amount_in = to_base_units(input_amount, input_token.decimals)
        return from_base_units(
            get_amount_out(amount_in, reserve_in, reserve_out), output_token.decimals
        )

    def get_amount_in(
        self,
        pool: LiquidityPool,
        output_amount: Decimal,
        input_token: Token,
    ) -> Decimal | None:
        """Input of ``input_token`` needed to receive ``output_amount``, or None."""
        reserve_in, reserve_out = pool.sides(input_token)
        output_token = pool.other(input_token)
        amount_in = get_amount_in(
            to_base_units(output_amount, output_token.decimals), reserve_in, reserve_out
        )
        if amount_in is None:
            return None
        return from_base_units(amount_in, input_token.decimals)

    def get_recommended_slippage(self, pool: LiquidityPool) -> float:
        """Slippage tolerance in percent, tiered on pool liquidity."""
        if pool.liquidity > VERY_LIQUID_THRESHOLD:
            return 0.5
        if pool.liquidity > MODERATELY_LIQUID_THRESHOLD:
            return 1.0
        return 2.0

    def clear_cache(self) -> None:
        """Drop every cached reserve snapshot, pool and per-pair fetch lock."""
        self._pool_cache.clear()
        self._reserves_cache.clear()
        self._locks.clear()

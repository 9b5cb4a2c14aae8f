"""Domain models for pools and swap routes."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class PoolProvider(str, Enum):
    UNISWAP_V2 = "uniswap_v2"
    SUSHISWAP = "sushiswap"
    UNISWAP_V3 = "uniswap_v3"


@dataclass(frozen=True)
class Token:
    """A fungible token identified by its contract address."""

    address: str
    symbol: str
    name: str
    decimals: int

    @property
    def key(self) -> str:
        return self.address.lower()

    def same_as(self, other: Token | str) -> bool:
        other_address = other if isinstance(other, str) else other.address
        return self.key == other_address.lower()


def pair_cache_key(token_a: str, token_b: str, provider: PoolProvider | str) -> str:
    """Cache key for an unordered token pair under a provider.

    ``(A, B)`` and ``(B, A)`` map to the same key.
    """
    first, second = sorted((token_a.lower(), token_b.lower()))
    return f"{first}-{second}:{PoolProvider(provider).value}"


@dataclass(frozen=True)
class PoolReserves:
    """Snapshot of a pool's reserves, ordered to match (token_a, token_b)."""

    token_a: str
    token_b: str
    reserve_a: int  # base units
    reserve_b: int  # base units
    pair_address: str
    provider: PoolProvider
    timestamp: float

    def flipped(self) -> PoolReserves:
        return PoolReserves(
            token_a=self.token_b,
            token_b=self.token_a,
            reserve_a=self.reserve_b,
            reserve_b=self.reserve_a,
            pair_address=self.pair_address,
            provider=self.provider,
            timestamp=self.timestamp,
        )


@dataclass(frozen=True)
class LiquidityPool:
    """Reserves enriched with token metadata, fee rate and liquidity depth."""

    token_a: Token
    token_b: Token
    reserves: PoolReserves
    fee: float
    liquidity: float
    provider: PoolProvider
    pair_address: str
    last_updated: str

    def sides(self, input_token: Token | str) -> tuple[int, int]:
        """Return ``(reserve_in, reserve_out)`` for a swap paying ``input_token``."""
        if self.token_a.same_as(input_token):
            return self.reserves.reserve_a, self.reserves.reserve_b
        if self.token_b.same_as(input_token):
            return self.reserves.reserve_b, self.reserves.reserve_a
        address = input_token if isinstance(input_token, str) else input_token.address
        raise ValueError(
            f"Token {address} is not part of pool {self.pair_address} "
            f"({self.token_a.symbol}/{self.token_b.symbol})"
        )

    def other(self, token: Token | str) -> Token:
        return self.token_b if self.token_a.same_as(token) else self.token_a

    def oriented(self, token_a: Token) -> LiquidityPool:
        """Return this pool with ``token_a`` as the first side."""
        if self.token_a.same_as(token_a):
            return self
        return LiquidityPool(
            token_a=self.token_b,
            token_b=self.token_a,
            reserves=self.reserves.flipped(),
            fee=self.fee,
            liquidity=self.liquidity,
            provider=self.provider,
            pair_address=self.pair_address,
            last_updated=self.last_updated,
        )


@dataclass(frozen=True)
class RouteSegment:
    """One hop through a single pool."""

    token_in: Token
    token_out: Token
    input_amount: Decimal
    output_amount: Decimal
    price_impact: float
    pool: LiquidityPool
    path_addresses: tuple[str, ...]


@dataclass(frozen=True)
class RouteLeg:
    """A path of one or more hops carrying ``percentage`` of the routed volume."""

    hops: tuple[RouteSegment, ...]
    input_amount: Decimal
    output_amount: Decimal
    price_impact: float
    percentage: Decimal

    @property
    def path(self) -> tuple[str, ...]:
        addresses = [self.hops[0].token_in.address]
        addresses.extend(hop.token_out.address for hop in self.hops)
        return tuple(addresses)


@dataclass(frozen=True)
class OptimalRoute:
    """Best route found for a quote request."""

    token_in: Token
    token_out: Token
    requested_amount: Decimal
    input_amount: Decimal
    expected_output: Decimal
    price_impact: float
    segments: tuple[RouteLeg, ...]
    is_split: bool
    paths: tuple[tuple[str, ...], ...]
    kind: str

    @property
    def is_partial(self) -> bool:
        """True when only part of the requested amount could be routed."""
        return self.input_amount < self.requested_amount

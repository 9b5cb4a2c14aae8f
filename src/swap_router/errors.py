"""Exception hierarchy for pool lookups and route search."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .routing.candidates import CandidateOutcome


class SwapRouterError(Exception):
    """Base class for all errors raised by swap_router."""


class PoolDataError(SwapRouterError):
    """Raised when pool state cannot be read from the chain."""

    def __init__(self, message: str, token_a: str, token_b: str):
        super().__init__(message)
        self.token_a = token_a
        self.token_b = token_b


class PairNotFoundError(PoolDataError):
    """Raised when no pool exists for a pair under the requested provider."""

    def __init__(self, token_a: str, token_b: str, provider: str):
        super().__init__(
            f"No {provider} pair exists for {token_a} and {token_b}",
            token_a,
            token_b,
        )
        self.provider = provider


class UnsupportedProviderError(SwapRouterError):
    """Raised when a pool provider has no adapter implementation."""

    def __init__(self, provider: str):
        super().__init__(f"Unsupported pool provider: {provider}")
        self.provider = provider


class RouteError(SwapRouterError):
    """Base class for route search failures."""


class RouteUnavailableError(RouteError):
    """Raised when a single route candidate is not viable."""


class NoRouteFoundError(RouteError):
    """Raised when every route candidate between two tokens failed."""

    def __init__(
        self,
        symbol_in: str,
        symbol_out: str,
        outcomes: Sequence[CandidateOutcome] = (),
    ):
        super().__init__(f"No viable route found from {symbol_in} to {symbol_out}")
        self.symbol_in = symbol_in
        self.symbol_out = symbol_out
        self.outcomes = list(outcomes)


class QuoteTimeoutError(RouteError):
    """Raised when a route search exceeds the configured quote timeout."""


class QuoteCancelledError(RouteError):
    """Raised when a caller abandons an in-flight route search."""

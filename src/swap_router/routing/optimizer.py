from __future__ import annotations

import asyncio
from dataclasses import replace
from decimal import Decimal
from typing import Awaitable, Callable, Sequence

from ..domain import OptimalRoute, RouteLeg, RouteSegment, Token
from ..errors import (
    NoRouteFoundError,
    QuoteCancelledError,
    QuoteTimeoutError,
    RouteUnavailableError,
)
from ..logger import get_logger
from ..pools.service import PoolDataService
from ..settings import RouterSettings
from ..tokens import TokenRegistry
from ..units import from_base_units, to_base_units
from .candidates import CandidateOutcome, RouteKind, RouteSearch

logger = get_logger(__name__)

HUNDRED = Decimal(100)
PERCENT_QUANTUM = Decimal("0.01")


class RouteOptimizerService:
    """Finds the conversion path with the highest expected output.

    Candidates are evaluated in order: the direct pool, two-hop routes
    through each bridge token, and for large amounts a split between the
    direct pool and the wrapped native token. A failing candidate is
    recorded as a ``CandidateOutcome`` and never aborts the search.
    """

    def __init__(
        self,
        pool_service: PoolDataService,
        tokens: TokenRegistry,
        config: RouterSettings,
    ):
        self.pools = pool_service
        self.tokens = tokens
        self.config = config

    async def find_optimal_route(
        self,
        token_in: Token,
        token_out: Token,
        amount: Decimal | str,
        max_slippage: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> OptimalRoute:
        """Return the best route for swapping ``amount`` of ``token_in``.

        Args:
            token_in: Token being sold
            token_out: Token being bought
            amount: Amount of ``token_in`` in whole-token units
            max_slippage: Price impact ceiling in percent per hop; defaults
                to ``default_max_slippage``
            cancel: Optional event; once set, the search stops before the
                next candidate or the next hop of a two-hop leg

        Raises:
            NoRouteFoundError: If no candidate produced a viable route
            QuoteTimeoutError: If the search exceeds ``quote_timeout_seconds``
            QuoteCancelledError: If ``cancel`` was set during the search
        """
        search = await self.search_routes(
            token_in, token_out, amount, max_slippage=max_slippage, cancel=cancel
        )
        best = search.best
        if best is None:
            for outcome in search.failures:
                logger.debug("Candidate %s unavailable: %s", outcome.label, outcome.reason)
            raise NoRouteFoundError(token_in.symbol, token_out.symbol, search.outcomes)

        logger.info(
            "Selected %s route %s -> %s: %s in, %s out, %.2f%% impact",
            best.kind,
            token_in.symbol,
            token_out.symbol,
            best.input_amount,
            best.expected_output,
            best.price_impact,
        )
        return best

    async def search_routes(
        self,
        token_in: Token,
        token_out: Token,
        amount: Decimal | str,
        max_slippage: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> RouteSearch:
        """Evaluate every candidate route and return all outcomes."""
        amount = Decimal(str(amount))
        if amount <= 0:
            raise ValueError(f"Amount must be positive, got {amount}")
        if token_in.same_as(token_out):
            raise ValueError(f"Cannot route {token_in.symbol} to itself")

        if max_slippage is None:
            max_slippage = self.config.default_max_slippage

        search = RouteSearch(token_in=token_in, token_out=token_out, amount=amount)
        timeout_s = self.config.quote_timeout_seconds

        try:
            if timeout_s is None or timeout_s <= 0:
                await self._run_search(search, max_slippage, cancel)
            else:
                async with asyncio.timeout(timeout_s):
                    await self._run_search(search, max_slippage, cancel)
        except TimeoutError as exc:
            raise QuoteTimeoutError(
                f"Route search {token_in.symbol} -> {token_out.symbol} exceeded "
                f"{timeout_s}s (quote_timeout_seconds)"
            ) from exc

        return search

    async def _run_search(
        self,
        search: RouteSearch,
        max_slippage: float,
        cancel: asyncio.Event | None,
    ) -> None:
        token_in, token_out, amount = search.token_in, search.token_out, search.amount

        direct = await self._evaluate(
            RouteKind.DIRECT,
            "direct",
            lambda: self._direct_route(token_in, token_out, amount, max_slippage),
            cancel,
        )
        search.outcomes.append(direct)

        if direct.route is not None and self._is_good_enough(direct.route, amount):
            search.early_exit = True
            return

        for bridge in self._bridge_candidates(token_in, token_out):
            search.outcomes.append(
                await self._evaluate(
                    RouteKind.BRIDGE,
                    f"bridge:{bridge.symbol}",
                    lambda bridge=bridge: self._bridge_route(
                        token_in, token_out, amount, max_slippage, bridge, cancel
                    ),
                    cancel,
                )
            )

        if amount >= Decimal(str(self.config.split_amount_threshold)):
            search.outcomes.append(
                await self._evaluate(
                    RouteKind.SPLIT,
                    "split",
                    lambda: self._split_route(
                        token_in, token_out, amount, max_slippage, cancel
                    ),
                    cancel,
                )
            )

    async def _evaluate(
        self,
        kind: RouteKind,
        label: str,
        build: Callable[[], Awaitable[OptimalRoute]],
        cancel: asyncio.Event | None,
    ) -> CandidateOutcome:
        self._check_cancel(cancel, label)
        try:
            route = await build()
        except QuoteCancelledError:
            raise
        except Exception as e:
            logger.debug("Route candidate %s failed: %s", label, e)
            return CandidateOutcome(kind=kind, label=label, error=e)
        return CandidateOutcome(kind=kind, label=label, route=route)

    @staticmethod
    def _check_cancel(cancel: asyncio.Event | None, stage: str) -> None:
        if cancel is not None and cancel.is_set():
            raise QuoteCancelledError(f"Route search cancelled before {stage}")

    def _is_good_enough(self, route: OptimalRoute, amount: Decimal) -> bool:
        """Small amounts and comfortable direct routes skip the wider search."""
        if amount < Decimal(str(self.config.small_amount_threshold)):
            return True
        return (
            not route.is_partial
            and route.price_impact < self.config.direct_route_comfort_impact
        )

    def _bridge_candidates(self, token_in: Token, token_out: Token) -> list[Token]:
        return [
            bridge
            for bridge in self.tokens.bridge_tokens()
            if not bridge.same_as(token_in) and not bridge.same_as(token_out)
        ]

    async def _direct_segment(
        self,
        token_in: Token,
        token_out: Token,
        amount: Decimal,
        max_slippage: float,
    ) -> RouteSegment:
        """Quote one hop, shrinking the amount if its impact exceeds the ceiling."""
        pool = await self.pools.get_pool_data(token_in, token_out)
        impact = self.pools.calculate_price_impact(pool, amount, token_in)

        actual = amount
        if impact > max_slippage:
            actual = self.pools.calculate_optimal_trade_size(
                pool, amount, token_in, max_slippage
            )
            if actual < amount * Decimal(str(self.config.min_viable_fraction)):
                raise RouteUnavailableError(
                    f"Only {actual} of {amount} {token_in.symbol} can be sold into "
                    f"{token_in.symbol}/{token_out.symbol} within {max_slippage}% impact"
                )
            impact = self.pools.calculate_price_impact(pool, actual, token_in)

        output = self.pools.get_amount_out(pool, actual, token_in)
        if output <= 0:
            raise RouteUnavailableError(
                f"{token_in.symbol}/{token_out.symbol} pool returns nothing for {actual}"
            )

        return RouteSegment(
            token_in=token_in,
            token_out=token_out,
            input_amount=actual,
            output_amount=output,
            price_impact=impact,
            pool=pool,
            path_addresses=(token_in.address, token_out.address),
        )

    def _fit_first_hop(
        self, first: RouteSegment, needed_output: Decimal, requested: Decimal
    ) -> RouteSegment:
        """Shrink the first hop so it only buys what the second hop can sell."""
        if needed_output >= first.output_amount:
            return first

        needed_input = self.pools.get_amount_in(first.pool, needed_output, first.token_in)
        if needed_input is None or needed_input >= first.input_amount:
            return first
        if needed_input < requested * Decimal(str(self.config.min_viable_fraction)):
            raise RouteUnavailableError(
                f"Second hop through {first.token_out.symbol} only absorbs "
                f"{needed_input} of {requested} {first.token_in.symbol}"
            )

        return replace(
            first,
            input_amount=needed_input,
            output_amount=self.pools.get_amount_out(first.pool, needed_input, first.token_in),
            price_impact=self.pools.calculate_price_impact(
                first.pool, needed_input, first.token_in
            ),
        )

    async def _two_hop_leg(
        self,
        token_in: Token,
        token_out: Token,
        amount: Decimal,
        max_slippage: float,
        bridge: Token,
        cancel: asyncio.Event | None = None,
    ) -> list[RouteSegment]:
        # Second hop sells exactly what the first hop buys, so hops run in order.
        first = await self._direct_segment(token_in, bridge, amount, max_slippage)
        self._check_cancel(cancel, f"second hop via {bridge.symbol}")
        second = await self._direct_segment(
            bridge, token_out, first.output_amount, max_slippage
        )
        first = self._fit_first_hop(first, second.input_amount, amount)
        return [first, second]

    async def _direct_route(
        self,
        token_in: Token,
        token_out: Token,
        amount: Decimal,
        max_slippage: float,
    ) -> OptimalRoute:
        segment = await self._direct_segment(token_in, token_out, amount, max_slippage)
        return self._build_route(
            [self._leg([segment], HUNDRED)], token_in, token_out, amount, RouteKind.DIRECT
        )

    async def _bridge_route(
        self,
        token_in: Token,
        token_out: Token,
        amount: Decimal,
        max_slippage: float,
        bridge: Token,
        cancel: asyncio.Event | None = None,
    ) -> OptimalRoute:
        hops = await self._two_hop_leg(
            token_in, token_out, amount, max_slippage, bridge, cancel
        )
        return self._build_route(
            [self._leg(hops, HUNDRED)], token_in, token_out, amount, RouteKind.BRIDGE
        )

    async def _split_route(
        self,
        token_in: Token,
        token_out: Token,
        amount: Decimal,
        max_slippage: float,
        cancel: asyncio.Event | None = None,
    ) -> OptimalRoute:
        """Send ``split_percentage`` through the direct pool, the rest via WETH."""
        wrapped = self.tokens.known(self.config.wrapped_native_address)
        if wrapped is None or wrapped.same_as(token_in) or wrapped.same_as(token_out):
            raise RouteUnavailableError(
                "Split routing needs a wrapped native token distinct from both endpoints"
            )

        # Split in base units so the two halves add back up exactly.
        total_base = to_base_units(amount, token_in.decimals)
        direct_base = total_base * self.config.split_percentage // 100
        direct_amount = from_base_units(direct_base, token_in.decimals)
        bridged_amount = from_base_units(total_base - direct_base, token_in.decimals)

        direct = await self._direct_segment(token_in, token_out, direct_amount, max_slippage)
        self._check_cancel(cancel, f"split leg via {wrapped.symbol}")
        bridged = await self._two_hop_leg(
            token_in, token_out, bridged_amount, max_slippage, wrapped, cancel
        )

        routed = direct.input_amount + bridged[0].input_amount
        direct_share = (direct.input_amount / routed * HUNDRED).quantize(PERCENT_QUANTUM)
        legs = [
            self._leg([direct], direct_share),
            self._leg(bridged, HUNDRED - direct_share),
        ]
        return self._build_route(legs, token_in, token_out, amount, RouteKind.SPLIT)

    @staticmethod
    def _leg(hops: Sequence[RouteSegment], percentage: Decimal) -> RouteLeg:
        return RouteLeg(
            hops=tuple(hops),
            input_amount=hops[0].input_amount,
            output_amount=hops[-1].output_amount,
            price_impact=max(hop.price_impact for hop in hops),
            percentage=percentage,
        )

    @staticmethod
    def _build_route(
        legs: Sequence[RouteLeg],
        token_in: Token,
        token_out: Token,
        requested: Decimal,
        kind: RouteKind,
    ) -> OptimalRoute:
        return OptimalRoute(
            token_in=token_in,
            token_out=token_out,
            requested_amount=requested,
            input_amount=sum((leg.input_amount for leg in legs), Decimal(0)),
            expected_output=sum((leg.output_amount for leg in legs), Decimal(0)),
            # Worst hop across every leg, never an average.
            price_impact=max(hop.price_impact for leg in legs for hop in leg.hops),
            segments=tuple(legs),
            is_split=len(legs) > 1,
            paths=tuple(leg.path for leg in legs),
            kind=kind.value,
        )

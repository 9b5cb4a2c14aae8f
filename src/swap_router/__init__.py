"""Swap route quoting over constant-product AMM pools."""

from __future__ import annotations

from .domain import LiquidityPool, OptimalRoute, PoolProvider, PoolReserves, RouteLeg, RouteSegment, Token
from .pools import PoolDataService
from .routing import RouteOptimizerService
from .settings import RouterSettings

__all__ = [
    "LiquidityPool",
    "OptimalRoute",
    "PoolDataService",
    "PoolProvider",
    "PoolReserves",
    "RouteLeg",
    "RouteOptimizerService",
    "RouteSegment",
    "RouterSettings",
    "Token",
]

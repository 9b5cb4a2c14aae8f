"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .adapters.pool_adapters import build_pool_adapters
from .clients.rpc import ThrottledRpc
from .pools.service import PoolDataService
from .routing.optimizer import RouteOptimizerService
from .settings import RouterSettings
from .tokens import TokenRegistry


@dataclass
class AppState:
    """Container for application-wide state and dependencies.

    This is the composition root: services are built once here and passed
    to callers instead of living in module-level singletons.
    """

    settings: RouterSettings
    logger: logging.Logger
    tokens: TokenRegistry
    pools: PoolDataService
    router: RouteOptimizerService

    @classmethod
    def build(cls, settings: RouterSettings, logger: logging.Logger) -> AppState:
        rpc = ThrottledRpc(settings)
        tokens = TokenRegistry(settings, rpc=rpc)
        pools = PoolDataService(settings, build_pool_adapters(settings, rpc=rpc))
        router = RouteOptimizerService(pools, tokens, settings)
        return cls(
            settings=settings,
            logger=logger,
            tokens=tokens,
            pools=pools,
            router=router,
        )

from __future__ import annotations

from .service import PROVIDER_FEES, PoolDataService, PoolFetchOutcome

__all__ = ["PROVIDER_FEES", "PoolDataService", "PoolFetchOutcome"]

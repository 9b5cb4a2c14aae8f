from __future__ import annotations

from .pool_adapters import POOL_ADAPTERS

__all__ = ["POOL_ADAPTERS"]

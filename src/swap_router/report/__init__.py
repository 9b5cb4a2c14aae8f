from __future__ import annotations

from .formatter import format_pool_table, format_route_table, pool_to_dict, route_to_dict

__all__ = ["format_pool_table", "format_route_table", "pool_to_dict", "route_to_dict"]

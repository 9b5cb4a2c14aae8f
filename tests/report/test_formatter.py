from __future__ import annotations

from decimal import Decimal

import pytest
from rich.console import Console

from conftest import TKA, TKB, WETH
from swap_router.report import format_pool_table, format_route_table, pool_to_dict, route_to_dict


@pytest.mark.asyncio
async def test_route_to_dict_keeps_amounts_as_strings(optimizer, adapter):
    adapter.add_pool(TKA, 19_900, WETH, 19_900)
    adapter.add_pool(WETH, 19_900, TKB, 19_900)

    route = await optimizer.find_optimal_route(TKA, TKB, Decimal(100))
    data = route_to_dict(route)

    assert data["kind"] == "bridge"
    assert data["inputAmount"] == "100"
    assert Decimal(data["expectedOutput"]) == route.expected_output
    assert data["priceImpact"] == 0.5
    assert [hop["tokenOut"] for hop in data["segments"][0]["hops"]] == [
        WETH.address,
        TKB.address,
    ]


@pytest.mark.asyncio
async def test_format_route_table_lists_every_hop(optimizer, adapter):
    adapter.add_pool(TKA, 19_900, WETH, 19_900)
    adapter.add_pool(WETH, 19_900, TKB, 19_900)
    route = await optimizer.find_optimal_route(TKA, TKB, Decimal(100))
    console = Console(record=True, width=160)

    format_route_table(route, console=console)
    text = console.export_text()

    assert "TKA > WETH > TKB" in text
    assert "WETH > TKB" in text
    assert "0.50%" in text


@pytest.mark.asyncio
async def test_pool_views(pool_service, adapter):
    adapter.add_pool(TKA, 1000, TKB, 4000)
    pool = await pool_service.get_pool_data(TKA, TKB)
    console = Console(record=True, width=160)

    format_pool_table(pool, 2.0, console=console)
    data = pool_to_dict(pool, 2.0)

    assert "TKA/TKB" in console.export_text()
    assert data["liquidity"] == pytest.approx(2000.0)
    assert data["recommendedSlippage"] == 2.0
    assert data["reserveB"] == str(4000 * 10**18)

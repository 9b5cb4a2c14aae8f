from __future__ import annotations

import pytest

from swap_router.pools.amm_math import (
    get_amount_in,
    get_amount_out,
    price_impact,
    search_trade_size,
)

WAD = 10**18


def test_amount_out_constant_product():
    assert get_amount_out(100, 1000, 1000) == 90
    assert get_amount_out(1000 * WAD, 1000 * WAD, 1000 * WAD) == 500 * WAD


@pytest.mark.parametrize(
    ("amount_in", "reserve_in", "reserve_out"),
    [(0, 10, 10), (-5, 10, 10), (5, 0, 10), (5, 10, 0)],
)
def test_amount_out_zero_for_degenerate_inputs(amount_in, reserve_in, reserve_out):
    assert get_amount_out(amount_in, reserve_in, reserve_out) == 0


def test_amount_in_inverts_amount_out():
    reserve_in, reserve_out = 1234 * WAD, 987 * WAD
    for wanted in (1, 10**9, 5 * WAD, 500 * WAD):
        needed = get_amount_in(wanted, reserve_in, reserve_out)
        assert get_amount_out(needed, reserve_in, reserve_out) >= wanted
        assert get_amount_out(needed - 2, reserve_in, reserve_out) < wanted


def test_amount_in_none_when_pool_cannot_supply():
    assert get_amount_in(1000, 1000, 1000) is None
    assert get_amount_in(0, 1000, 1000) == 0


def test_price_impact_floors_to_two_decimals():
    # 100 into 1900: 5% exactly; 18.75 into 1900: 0.977% floored.
    assert price_impact(100 * WAD, 1900 * WAD, 1900 * WAD) == 5.0
    assert price_impact(1875 * WAD // 100, 1900 * WAD, 1900 * WAD) == 0.97


def test_price_impact_ignores_spot_price_level():
    assert price_impact(10 * WAD, 1000 * WAD, 1000 * WAD) == price_impact(
        10 * WAD, 1000 * WAD, 7 * 1000 * WAD
    )


def test_price_impact_negligible_input():
    assert price_impact(WAD - 1, 10_000 * WAD, 10_000 * WAD) == 0.0
    assert price_impact(0, 10_000 * WAD, 10_000 * WAD) == 0.0


def _impact(reserve: int):
    return lambda amount: price_impact(amount, reserve, reserve)


def test_search_returns_max_when_within_ceiling():
    assert search_trade_size(10 * WAD, _impact(10_000 * WAD), 1.0, tolerance=0.1, max_iterations=10) == 10 * WAD


def test_search_stops_within_tolerance():
    size = search_trade_size(100 * WAD, _impact(1900 * WAD), 1.0, tolerance=0.1, max_iterations=10)
    assert size == 1875 * WAD // 100


def test_search_never_settles_above_the_ceiling():
    impact_of = _impact(1900 * WAD)
    size = search_trade_size(100 * WAD, impact_of, 0.95, tolerance=0.1, max_iterations=10)

    # 18.75 lands within tolerance but at 0.97%, so the search keeps narrowing.
    assert size == 171875 * WAD // 10000
    assert impact_of(size) <= 0.95


def test_search_falls_back_to_lower_bound_after_iteration_cap():
    impact_of = _impact(1900 * WAD)
    size = search_trade_size(100 * WAD, impact_of, 1.0, tolerance=1e-9, max_iterations=3)

    # 50 -> too much, 25 -> too much, 12.5 -> fits; cap reached.
    assert size == 125 * WAD // 10
    assert impact_of(size) <= 1.0


def test_search_zero_max():
    assert search_trade_size(0, _impact(WAD), 1.0, tolerance=0.1, max_iterations=10) == 0

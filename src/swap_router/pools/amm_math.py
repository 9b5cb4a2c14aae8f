"""Constant-product (x * y = k) pool math on integer base units."""

from __future__ import annotations

from typing import Callable

WAD = 10**18

# Inputs smaller than reserve_in / NEGLIGIBLE_INPUT_DIVISOR report zero impact.
NEGLIGIBLE_INPUT_DIVISOR = 10_000


def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """Output of a constant-product swap, without fees.

    ``(reserve_in + amount_in) * (reserve_out - amount_out) = reserve_in * reserve_out``
    """
    if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return 0
    return (reserve_out * amount_in) // (reserve_in + amount_in)


def get_amount_in(amount_out: int, reserve_in: int, reserve_out: int) -> int | None:
    """Smallest input whose constant-product output covers ``amount_out``.

    Returns None when the pool cannot supply ``amount_out``.
    """
    if amount_out <= 0:
        return 0
    if reserve_in <= 0 or amount_out >= reserve_out:
        return None
    return (reserve_in * amount_out) // (reserve_out - amount_out) + 1


def price_impact(amount_in: int, reserve_in: int, reserve_out: int) -> float:
    """Relative shortfall of the x*y=k output versus the spot-price output.

    Returns:
        Impact in percent with two decimals (floored). Zero for empty input,
        empty reserves, or inputs below ``reserve_in / 10000``.
    """
    if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return 0.0
    if amount_in < reserve_in // NEGLIGIBLE_INPUT_DIVISOR:
        return 0.0

    spot_ratio = (reserve_out * WAD) // reserve_in
    expected_output = (amount_in * spot_ratio) // WAD

    remaining_output = (reserve_in * reserve_out) // (reserve_in + amount_in)
    actual_output = reserve_out - remaining_output

    if expected_output <= 0 or actual_output >= expected_output:
        return 0.0

    return ((expected_output - actual_output) * 10_000 // expected_output) / 100


def search_trade_size(
    max_amount: int,
    impact_of: Callable[[int], float],
    max_impact: float,
    *,
    tolerance: float,
    max_iterations: int,
) -> int:
    """Bounded binary search for the largest input whose impact fits ``max_impact``.

    Stops early when the midpoint fits the ceiling and is within ``tolerance``
    of it. A midpoint above the ceiling only narrows the range, so the result
    never exceeds ``max_impact``. When the range cannot be split further or
    ``max_iterations`` is reached, the lower bound is returned.
    """
    if max_amount <= 0:
        return 0
    if impact_of(max_amount) <= max_impact:
        return max_amount

    low, high = 0, max_amount
    for _ in range(max_iterations):
        mid = (low + high) // 2
        if mid == low or mid == high:
            break

        impact = impact_of(mid)
        if impact <= max_impact and max_impact - impact < tolerance:
            return mid

        if impact > max_impact:
            high = mid
        else:
            low = mid

    return low

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, localcontext

UINT256_MAX = 2**256 - 1

# Enough digits for any uint256 value.
_UINT256_PRECISION = 78


def to_base_units(amount: Decimal | str | int, decimals: int) -> int:
    """Convert a human-readable token amount into integer base units.

    Args:
        amount: Amount expressed in whole tokens (e.g. ``Decimal("1.5")``).
        decimals: Decimal precision of the token.

    Returns:
        The amount in base units.

    Raises:
        ValueError: If the amount is negative or does not fit in a uint256
            once scaled.

    Notes:
        - Digits beyond ``decimals`` are truncated toward zero, matching
          how on-chain amounts cannot carry sub-unit precision.
    """
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    if value < 0:
        raise ValueError(f"Amount must be non-negative, got {amount}")
    with localcontext() as ctx:
        # Room for every integer digit of the scaled value, so nothing rounds.
        ctx.prec = max(_UINT256_PRECISION, value.adjusted() + decimals + 2)
        scaled = value.scaleb(decimals).quantize(Decimal(1), rounding=ROUND_DOWN)
    base = int(scaled)
    if base > UINT256_MAX:
        raise ValueError(f"Amount {amount} exceeds uint256 at {decimals} decimals")
    return base


def from_base_units(value: int, decimals: int) -> Decimal:
    """Convert integer base units into a human-readable Decimal amount."""
    with localcontext() as ctx:
        ctx.prec = _UINT256_PRECISION
        return Decimal(value).scaleb(-decimals)

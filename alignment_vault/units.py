"""Fixed-point helpers.

- All ledger quantities are raw integers, like ERC-20 amounts on chain

- Shares and the value-per-share accumulator use :py:data:`SHARE_SCALE`

- Use :py:func:`convert_to_decimals` only for display and reports,
  never feed the result back into the accounting
"""

from decimal import Decimal

#: Fixed-point scale of shares and the cumulative value-per-share accumulator
SHARE_SCALE = 10**18

#: Basis points in 100%
BPS_SCALE = 10_000

#: Decimals of the settlement unit (ETH-like)
SETTLEMENT_DECIMALS = 18


def mul_div(a: int, b: int, denominator: int) -> int:
    """Calculate ``a * b // denominator`` with floor rounding.

    Same semantics as Solidity ``mulDiv`` for non-negative inputs.
    """
    assert denominator > 0, f"Division by zero: {a} * {b} / {denominator}"
    assert a >= 0 and b >= 0, f"Negative operands: {a}, {b}"
    return a * b // denominator


def bps_of(amount: int, bps: int) -> int:
    """Take a basis point fraction of an amount, rounding down."""
    return mul_div(amount, bps, BPS_SCALE)


def convert_to_decimals(raw_amount: int, decimals: int = SETTLEMENT_DECIMALS) -> Decimal:
    """Convert raw integer amount to a human-readable decimal.

    Example:

    .. code-block:: python

        assert convert_to_decimals(5 * 10**17) == Decimal("0.5")
    """
    return Decimal(raw_amount) / Decimal(10**decimals)


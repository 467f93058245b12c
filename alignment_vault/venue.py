"""External yield venue interface.

The vault hands each round's pooled contribution to a venue and gets back a
position. How the venue swaps or deposits the value is not the vault's concern.

- :py:class:`YieldVenue` is the interface the vault calls

- :py:class:`SimulatedConstantProductVenue` prices conversions like a
  Uniswap v2 pair, for research and tests
"""

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from alignment_vault.errors import SlippageExceeded
from alignment_vault.units import BPS_SCALE

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConversionOutput:
    """What the venue gave us for a conversion."""

    #: Venue specific reference to the position, e.g. LP token id
    position_id: str

    #: Realised output in raw units of the position asset
    output: int


@runtime_checkable
class YieldVenue(Protocol):
    """Venue that turns pooled contributions into a yield-bearing position."""

    def convert(self, amount_in: int, minimum_output: int) -> ConversionOutput:
        """Convert ``amount_in`` settlement units into a position.

        Must not settle anything if the output would be below ``minimum_output``.

        :raise SlippageExceeded:
            If the output is below ``minimum_output``
        """
        ...


def get_amount_out_from_reserves(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    *,
    fee: int = 30,
) -> int:
    """Given an input asset amount, returns the maximum output amount of
    the other asset (accounting for fees) given reserves.

    :param amount_in: Amount of input asset.
    :param reserve_in: Reserve of input asset in the pair.
    :param reserve_out: Reserve of output asset in the pair.
    :param fee: Trading fee express in bps, default = 30 bps (0.3%)
    :return: Maximum amount of output asset.
    """
    assert amount_in > 0
    assert reserve_in > 0 and reserve_out > 0
    amount_in_with_fee = amount_in * (BPS_SCALE - fee)
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * BPS_SCALE + amount_in_with_fee
    return numerator // denominator


class SimulatedConstantProductVenue:
    """In-memory constant product pair.

    Every conversion swaps the input against the reserves and
    opens a new position holding the output.
    """

    def __init__(self, reserve_in: int, reserve_out: int, fee: int = 30):
        assert reserve_in > 0 and reserve_out > 0, "Pair needs liquidity"
        assert 0 <= fee < BPS_SCALE
        self.reserve_in = reserve_in
        self.reserve_out = reserve_out
        self.fee = fee
        self.positions: dict[str, int] = {}

    def quote(self, amount_in: int) -> int:
        """Output a conversion would realise right now."""
        return get_amount_out_from_reserves(amount_in, self.reserve_in, self.reserve_out, fee=self.fee)

    def convert(self, amount_in: int, minimum_output: int) -> ConversionOutput:
        output = self.quote(amount_in)
        if output < minimum_output:
            raise SlippageExceeded(output, minimum_output)

        self.reserve_in += amount_in
        self.reserve_out -= output
        position_id = f"position-{len(self.positions) + 1}"
        self.positions[position_id] = output
        logger.info("Swapped %d in for %d out, opened %s", amount_in, output, position_id)
        return ConversionOutput(position_id=position_id, output=output)

"""Contribution ledger.

Accumulates unconverted contributions per benefactor until the next
conversion round picks them up.
"""

import logging

from eth_typing import HexAddress

from alignment_vault.address_ledger import normalise_address
from alignment_vault.errors import InvalidAmount
from alignment_vault.state import VaultState

logger = logging.getLogger(__name__)


def validate_amount(amount: int, what: str = "amount") -> int:
    """Check an amount is a positive raw integer.

    :raise InvalidAmount:
        For zero, negative, ``bool`` or non-integer values
    """
    if type(amount) is not int:
        raise InvalidAmount(f"{what} must be a raw integer, got {amount!r}")
    if amount <= 0:
        raise InvalidAmount(f"{what} must be positive, got {amount}")
    return amount


class ContributionLedger:
    """Pending and lifetime contribution bookkeeping."""

    def __init__(self, state: VaultState):
        self.state = state

    def record(self, benefactor: HexAddress | str, amount: int) -> HexAddress:
        """Add a contribution to the benefactor's pending balance.

        Never mints shares.

        :return:
            Checksummed benefactor address
        """
        validate_amount(amount)
        benefactor = normalise_address(benefactor)
        self.state.pending.add(benefactor, amount)
        self.state.lifetime.add(benefactor, amount)
        self.state.total_pending += amount
        logger.info("Recorded contribution %d from %s, total pending %d", amount, benefactor, self.state.total_pending)
        return benefactor

    def pending_of(self, benefactor: HexAddress | str) -> int:
        return self.state.pending[benefactor]

    def lifetime_of(self, benefactor: HexAddress | str) -> int:
        return self.state.lifetime[benefactor]

    def snapshot_round(self) -> list[tuple[HexAddress, int]]:
        """Pending contributions of this round's participants, in first-seen order."""
        return list(self.state.pending.nonzero())

    def reset(self, participants: list[tuple[HexAddress, int]]):
        """Drop converted participants from the pending map."""
        for benefactor, _ in participants:
            del self.state.pending[benefactor]
        self.state.total_pending = 0

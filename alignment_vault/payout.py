"""Outgoing transfers.

The vault calls the payout rail last in every operation, after all ledger
state has been updated.
"""

import logging
from typing import Protocol, runtime_checkable

from eth_typing import HexAddress

from alignment_vault.address_ledger import AddressLedger

logger = logging.getLogger(__name__)


@runtime_checkable
class PayoutRail(Protocol):
    """Sends settlement units out of the vault."""

    def transfer(self, recipient: HexAddress, amount: int):
        """Send ``amount`` raw units to ``recipient``.

        Raise to abort the calling vault operation.
        """
        ...


class BalanceBookPayoutRail:
    """Credit payouts to an in-memory balance book."""

    def __init__(self):
        self.balances = AddressLedger()
        self.total_paid = 0

    def transfer(self, recipient: HexAddress, amount: int):
        assert amount > 0, f"Pointless transfer of {amount}"
        self.balances.add(recipient, amount)
        self.total_paid += amount
        logger.debug("Paid %d to %s", amount, recipient)

    def balance_of(self, recipient: HexAddress | str) -> int:
        return self.balances[recipient]

"""Share ledger.

Persistent benefactor to share balance map with a running total.
Shares are fixed-point integers at :py:data:`~alignment_vault.units.SHARE_SCALE`
and are not transferable.
"""

from eth_typing import HexAddress

from alignment_vault.state import VaultState


class ShareLedger:
    def __init__(self, state: VaultState):
        self.state = state

    def balance_of(self, benefactor: HexAddress | str) -> int:
        return self.state.shares[benefactor]

    @property
    def total_shares(self) -> int:
        return self.state.total_shares

    def mint(self, benefactor: HexAddress | str, amount: int) -> int:
        """Add shares to a balance.

        The caller must settle the benefactor's accrued yield first,
        see :py:meth:`alignment_vault.accrual.YieldAccrualTracker.settle`.

        :return:
            New balance
        """
        assert amount >= 0, f"Cannot mint negative shares: {amount}"
        balance = self.state.shares.add(benefactor, amount)
        self.state.total_shares += amount
        return balance

    def share_of_supply(self, benefactor: HexAddress | str) -> float:
        """Benefactor's fraction of all shares, for display."""
        if self.state.total_shares == 0:
            return 0.0
        return self.state.shares[benefactor] / self.state.total_shares

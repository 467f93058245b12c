"""Yield accrual tracker.

Accumulated-rewards-per-share bookkeeping:

- Every yield deposit ``j`` adds ``amount_j * S / total_shares_j`` to a global
  accumulator, using the share supply *at deposit time*

- A benefactor holding ``s`` shares since watermark ``w`` is owed
  ``s * (C - w) / S``, however many deposits happened in between

- Claim cost is O(1), no deposit history is kept

- Yield deposited while no shares exist is buffered and applied
  after the next share issuance, instead of dividing by zero

Integer division loses at most one raw unit per deposit and per
benefactor settlement. The lost dust stays in ``yield_balance``.
"""

import logging

from eth_typing import HexAddress

from alignment_vault.state import VaultState
from alignment_vault.units import SHARE_SCALE, mul_div

logger = logging.getLogger(__name__)


class YieldAccrualTracker:
    def __init__(self, state: VaultState):
        self.state = state

    @property
    def cumulative_value_per_share(self) -> int:
        return self.state.cumulative_value_per_share

    def deposit(self, amount: int) -> bool:
        """Account a yield deposit.

        The amount must already be validated as positive.

        :return:
            ``True`` if the accumulator moved, ``False`` if the amount was buffered
        """
        state = self.state
        state.yield_balance += amount
        state.total_yield += amount

        if state.total_shares == 0:
            state.deferred_yield += amount
            logger.info("No shares outstanding, buffered %d yield, deferred total %d", amount, state.deferred_yield)
            return False

        self._accumulate(amount)
        return True

    def apply_deferred(self) -> int:
        """Move buffered yield into the accumulator once shares exist.

        :return:
            Amount applied, zero if nothing was buffered or there are still no shares
        """
        state = self.state
        amount = state.deferred_yield
        if amount == 0 or state.total_shares == 0:
            return 0
        state.deferred_yield = 0
        self._accumulate(amount)
        logger.info("Applied %d deferred yield over %d shares", amount, state.total_shares)
        return amount

    def _accumulate(self, amount: int):
        state = self.state
        assert state.total_shares > 0
        increment = mul_div(amount, SHARE_SCALE, state.total_shares)
        state.cumulative_value_per_share += increment
        logger.info(
            "Yield %d over %d shares, accumulator +%d to %d",
            amount,
            state.total_shares,
            increment,
            state.cumulative_value_per_share,
        )

    def accrued_since_watermark(self, benefactor: HexAddress | str) -> int:
        """Yield earned by current shares since the benefactor's watermark."""
        state = self.state
        delta = state.cumulative_value_per_share - state.watermarks[benefactor]
        assert delta >= 0, f"Watermark ahead of accumulator for {benefactor}"
        return mul_div(state.shares[benefactor], delta, SHARE_SCALE)

    def owed(self, benefactor: HexAddress | str) -> int:
        """Everything the benefactor could claim right now."""
        return self.state.accrued[benefactor] + self.accrued_since_watermark(benefactor)

    def settle(self, benefactor: HexAddress | str):
        """Bank yield earned so far and move the watermark to the accumulator.

        Must be called before a benefactor's share balance changes, so new
        shares only earn yield deposited after they were minted.
        """
        earned = self.accrued_since_watermark(benefactor)
        if earned:
            self.state.accrued.add(benefactor, earned)
        self.state.watermarks[benefactor] = self.state.cumulative_value_per_share

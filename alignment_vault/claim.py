"""Claim and payout.

A claim pays the delta between the accumulator and the benefactor's
watermark. The watermark moves before the payout rail is called, so a
payout callback that claims again sees nothing left to claim.
"""

import logging
from dataclasses import dataclass

from eth_typing import HexAddress

from alignment_vault.accrual import YieldAccrualTracker
from alignment_vault.address_ledger import normalise_address
from alignment_vault.payout import PayoutRail
from alignment_vault.state import VaultState

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ClaimResult:
    benefactor: HexAddress
    amount: int

    #: Watermark after the claim
    watermark: int


class ClaimProcessor:
    def __init__(self, state: VaultState, accrual: YieldAccrualTracker, payout: PayoutRail):
        self.state = state
        self.accrual = accrual
        self.payout = payout

    def claimable(self, benefactor: HexAddress | str) -> int:
        return self.accrual.owed(benefactor)

    def claim(self, benefactor: HexAddress | str) -> ClaimResult:
        """Pay out everything the benefactor is owed.

        Zero owed is a valid no-op and changes nothing.
        """
        benefactor = normalise_address(benefactor)
        state = self.state
        owed = self.accrual.owed(benefactor)
        if owed == 0:
            logger.debug("Nothing to claim for %s", benefactor)
            return ClaimResult(benefactor, 0, state.watermarks[benefactor])

        assert owed <= state.yield_balance, f"Owed {owed} to {benefactor} but vault holds {state.yield_balance} yield"

        watermark = state.cumulative_value_per_share
        state.watermarks[benefactor] = watermark
        state.accrued[benefactor] = 0
        state.yield_balance -= owed
        state.total_claimed += owed

        logger.info("%s claimed %d at watermark %d", benefactor, owed, watermark)
        self.payout.transfer(benefactor, owed)
        return ClaimResult(benefactor, owed, watermark)

"""Conversion engine.

Turns a round of pending contributions into a venue position and mints
new shares to the round's participants.

- Shares minted in a round are pro-rata *within that round only*
  and are added to earlier balances, so later rounds never change the
  outcome of earlier ones

- Nothing pending is a cheap no-op, anyone may trigger a conversion

- Ledger state is only touched after the venue has settled above the floor

- The venue is the last outward call of a round. The caller incentive is
  credited to a keeper balance and withdrawn separately, so nothing that
  runs after the venue settles can fail and strand the position
"""

import logging
from dataclasses import dataclass, field
from typing import Callable

from eth_typing import HexAddress

from alignment_vault.accrual import YieldAccrualTracker
from alignment_vault.contribution import ContributionLedger
from alignment_vault.errors import SlippageExceeded
from alignment_vault.shares import ShareLedger
from alignment_vault.state import VaultState
from alignment_vault.units import bps_of, mul_div
from alignment_vault.venue import ConversionOutput, YieldVenue

logger = logging.getLogger(__name__)


#: Maps venue output to the number of new shares issued for a round
SharePolicy = Callable[[ConversionOutput], int]


def issue_shares_by_output(output: ConversionOutput) -> int:
    """Default share policy: one share unit per raw unit of venue output."""
    return output.output


@dataclass(frozen=True, slots=True)
class ConversionRound:
    """Outcome of one conversion round."""

    round_id: int

    #: Pending contribution consumed, including the caller incentive
    total_contribution: int

    #: Credited to the caller, see :py:meth:`alignment_vault.vault.AlignmentVault.withdraw_incentive`
    incentive: int

    #: Handed to the venue
    amount_in: int

    position_id: str
    output: int

    #: Shares issued for the round, before rounding
    new_shares: int

    #: Shares actually minted to each participant
    allocations: dict[HexAddress, int] = field(default_factory=dict)

    #: Deferred yield applied after minting
    deferred_yield_applied: int = 0

    @property
    def minted(self) -> int:
        return sum(self.allocations.values())

    @property
    def dust(self) -> int:
        return self.new_shares - self.minted


class ConversionEngine:
    def __init__(
        self,
        state: VaultState,
        contributions: ContributionLedger,
        shares: ShareLedger,
        accrual: YieldAccrualTracker,
        venue: YieldVenue,
        share_policy: SharePolicy = issue_shares_by_output,
    ):
        self.state = state
        self.contributions = contributions
        self.shares = shares
        self.accrual = accrual
        self.venue = venue
        self.share_policy = share_policy

    def convert(self, caller: HexAddress, minimum_output: int, incentive_bps: int) -> ConversionRound | None:
        """Run a conversion round.

        :param caller:
            Who triggered the round, credited with the incentive

        :param minimum_output:
            Effective output floor, already combined with the vault-wide floor

        :param incentive_bps:
            Caller incentive as a fraction of the pooled contribution

        :return:
            ``None`` when nothing was pending

        :raise SlippageExceeded:
            Venue output below ``minimum_output`` or zero
        """
        state = self.state
        if state.total_pending == 0:
            logger.debug("Nothing pending, conversion by %s is a no-op", caller)
            return None

        participants = self.contributions.snapshot_round()
        total = state.total_pending
        assert total == sum(amount for _, amount in participants), "Pending total out of sync"

        incentive = bps_of(total, incentive_bps)
        amount_in = total - incentive

        output = self.venue.convert(amount_in, minimum_output)
        # Venues are external, do not trust them to enforce the floor.
        # Zero output would burn the round's contributions.
        floor = max(minimum_output, 1)
        if output.output < floor:
            raise SlippageExceeded(output.output, floor)

        new_shares = self.share_policy(output)
        assert type(new_shares) is int and new_shares > 0, f"Share policy issued {new_shares!r} shares for {output}"

        allocations = {benefactor: mul_div(new_shares, contribution, total) for benefactor, contribution in participants}
        if sum(allocations.values()) == 0:
            # Every pro-rata share floored to zero: the whole issuance goes
            # to the largest contributor, earliest on ties
            largest, _ = max(participants, key=lambda p: p[1])
            allocations[largest] = new_shares

        for benefactor, minted in allocations.items():
            self.accrual.settle(benefactor)
            self.shares.mint(benefactor, minted)

        self.contributions.reset(participants)
        applied = self.accrual.apply_deferred()

        state.round_count += 1
        conversion_round = ConversionRound(
            round_id=state.round_count,
            total_contribution=total,
            incentive=incentive,
            amount_in=amount_in,
            position_id=output.position_id,
            output=output.output,
            new_shares=new_shares,
            allocations=allocations,
            deferred_yield_applied=applied,
        )
        state.share_dust += conversion_round.dust

        logger.info(
            "Round %d: converted %d into %d at %s, minted %d shares to %d benefactors, dust %d",
            conversion_round.round_id,
            amount_in,
            output.output,
            output.position_id,
            conversion_round.minted,
            len(allocations),
            conversion_round.dust,
        )

        if incentive:
            state.incentives.add(caller, incentive)

        return conversion_round

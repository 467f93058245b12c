"""Alignment vault aggregate.

Public entry point tying the ledgers together:

- :py:meth:`AlignmentVault.record_contribution` from approved sources

- :py:meth:`AlignmentVault.convert` by anyone, to turn pending
  contributions into a position and mint shares

- :py:meth:`AlignmentVault.deposit_yield` when yield is harvested

- :py:meth:`AlignmentVault.claim_fees` by benefactors

- :py:meth:`AlignmentVault.withdraw_incentive` by whoever ran conversions

Every mutating call is atomic. The vault journals its state on entry and
rolls back if anything raises, including the venue and the payout rail.
Notifications are published only once the outermost call has succeeded.

Example:

.. code-block:: python

    vault = AlignmentVault(
        VaultConfig(owner=owner, authorised_sources=frozenset([hook])),
        venue=SimulatedConstantProductVenue(100 * 10**18, 100_000 * 10**18),
        payout=BalanceBookPayoutRail(),
    )
    vault.record_contribution(hook, alice, 5 * 10**18)
    vault.convert(keeper)
    vault.deposit_yield(10**18)
    paid = vault.claim_fees(alice)
"""

import dataclasses
import logging
from contextlib import contextmanager
from typing import Iterator

from eth_typing import HexAddress

from alignment_vault.accrual import YieldAccrualTracker
from alignment_vault.address_ledger import normalise_address
from alignment_vault.claim import ClaimProcessor
from alignment_vault.config import VaultConfig
from alignment_vault.contribution import ContributionLedger, validate_amount
from alignment_vault.conversion import ConversionEngine, ConversionRound, SharePolicy, issue_shares_by_output
from alignment_vault.errors import InvariantViolation, Unauthorized, VaultConfigurationError
from alignment_vault.events import (
    Claimed,
    ConfigurationChanged,
    ContributionRecorded,
    Converted,
    DeferredYieldApplied,
    IncentiveWithdrawn,
    VaultEvent,
    VaultEventLog,
    YieldDeposited,
)
from alignment_vault.payout import BalanceBookPayoutRail, PayoutRail
from alignment_vault.shares import ShareLedger
from alignment_vault.state import Benefactor, VaultState
from alignment_vault.venue import YieldVenue

logger = logging.getLogger(__name__)


class AlignmentVault:
    """Share accounting and fee distribution for one vault."""

    def __init__(
        self,
        config: VaultConfig,
        venue: YieldVenue,
        payout: PayoutRail | None = None,
        share_policy: SharePolicy = issue_shares_by_output,
        event_log: VaultEventLog | None = None,
    ):
        assert isinstance(config, VaultConfig), f"Expected VaultConfig, got {config}"
        self.config = config
        self.venue = venue
        self.payout = payout if payout is not None else BalanceBookPayoutRail()
        self.event_log = event_log if event_log is not None else VaultEventLog()

        self.state = VaultState()
        self.contributions = ContributionLedger(self.state)
        self.share_ledger = ShareLedger(self.state)
        self.accrual = YieldAccrualTracker(self.state)
        self.conversion = ConversionEngine(
            self.state,
            self.contributions,
            self.share_ledger,
            self.accrual,
            venue,
            share_policy,
        )
        self.claims = ClaimProcessor(self.state, self.accrual, self.payout)

        self._depth = 0
        self._unpublished: list[VaultEvent] = []

    def __repr__(self):
        return f"<AlignmentVault shares:{self.state.total_shares} pending:{self.state.total_pending} rounds:{self.state.round_count}>"

    @contextmanager
    def _atomic(self, operation: str) -> Iterator[None]:
        """Run an operation with all-or-nothing semantics.

        Nests for re-entrant calls made from venue or payout callbacks.
        """
        checkpoint = self.state.checkpoint()
        config = self.config
        event_mark = len(self._unpublished)
        self._depth += 1
        try:
            yield
        except BaseException as e:
            # Interrupts included
            self.state.rollback(checkpoint)
            self.config = config
            del self._unpublished[event_mark:]
            logger.warning("%s reverted: %s", operation, e)
            raise
        finally:
            self._depth -= 1
            if self._depth == 0:
                self.state.commit()

        if self._depth == 0:
            events, self._unpublished = self._unpublished, []
            self.event_log.publish(events)

    def _emit(self, event: VaultEvent):
        self._unpublished.append(event)

    #
    # Contribution ledger
    #

    def record_contribution(self, source: HexAddress | str, benefactor: HexAddress | str, amount: int):
        """Attribute a contribution to a benefactor.

        :param source:
            Calling contribution source, e.g. a fee-collecting hook

        :raise Unauthorized:
            Source is not approved

        :raise InvalidAmount:
            Amount is not a positive integer
        """
        if not self.config.is_authorised_source(source):
            raise Unauthorized(f"Contribution source {source} is not authorised")
        with self._atomic("record_contribution"):
            benefactor = self.contributions.record(benefactor, amount)
            self._emit(
                ContributionRecorded(
                    source=normalise_address(source),
                    benefactor=benefactor,
                    amount=amount,
                    pending=self.state.pending[benefactor],
                )
            )

    #
    # Conversion
    #

    def convert(self, caller: HexAddress | str, minimum_output: int = 0) -> ConversionRound | None:
        """Convert pending contributions and mint this round's shares.

        Anyone may call this. With nothing pending it returns ``None``
        and changes nothing.

        :param caller:
            Credited with the conversion incentive

        :param minimum_output:
            Caller's floor for venue output. The vault-wide floor applies if higher.

        :raise SlippageExceeded:
            Venue output below the floor
        """
        caller = normalise_address(caller)
        assert type(minimum_output) is int and minimum_output >= 0, f"Bad minimum_output {minimum_output!r}"
        if self.state.total_pending == 0:
            logger.debug("convert() by %s with nothing pending", caller)
            return None

        floor = max(minimum_output, self.config.minimum_output)
        with self._atomic("convert"):
            conversion_round = self.conversion.convert(caller, floor, self.config.conversion_incentive_bps)
            self._emit(
                Converted(
                    round_id=conversion_round.round_id,
                    caller=caller,
                    total_contribution=conversion_round.total_contribution,
                    amount_in=conversion_round.amount_in,
                    output=conversion_round.output,
                    position_id=conversion_round.position_id,
                    new_shares=conversion_round.new_shares,
                    participant_count=len(conversion_round.allocations),
                    incentive=conversion_round.incentive,
                )
            )
            if conversion_round.deferred_yield_applied:
                self._emit(
                    DeferredYieldApplied(
                        amount=conversion_round.deferred_yield_applied,
                        total_shares=self.state.total_shares,
                        cumulative_value_per_share=self.state.cumulative_value_per_share,
                    )
                )
        return conversion_round

    #
    # Yield
    #

    def deposit_yield(self, amount: int) -> bool:
        """Distribute harvested yield over current shares.

        With no shares outstanding the amount is buffered until
        the next conversion mints some.

        :return:
            ``True`` if distributed now, ``False`` if buffered

        :raise InvalidAmount:
            Amount is not a positive integer
        """
        validate_amount(amount, "yield")
        with self._atomic("deposit_yield"):
            applied = self.accrual.deposit(amount)
            self._emit(
                YieldDeposited(
                    amount=amount,
                    total_shares=self.state.total_shares,
                    cumulative_value_per_share=self.state.cumulative_value_per_share,
                    deferred=not applied,
                )
            )
        return applied

    #
    # Claims
    #

    def claim_fees(self, benefactor: HexAddress | str) -> int:
        """Pay the benefactor's unclaimed yield.

        :return:
            Amount paid, zero if nothing was owed
        """
        with self._atomic("claim_fees"):
            result = self.claims.claim(benefactor)
            if result.amount:
                self._emit(Claimed(benefactor=result.benefactor, amount=result.amount, watermark=result.watermark))
        return result.amount

    def claimable(self, benefactor: HexAddress | str) -> int:
        return self.claims.claimable(benefactor)

    def withdraw_incentive(self, caller: HexAddress | str) -> int:
        """Pay out conversion incentives credited to a caller.

        :return:
            Amount paid, zero if nothing was credited
        """
        caller = normalise_address(caller)
        amount = self.state.incentives[caller]
        if amount == 0:
            return 0
        with self._atomic("withdraw_incentive"):
            del self.state.incentives[caller]
            self.payout.transfer(caller, amount)
            self._emit(IncentiveWithdrawn(caller=caller, amount=amount))
        logger.info("%s withdrew %d conversion incentive", caller, amount)
        return amount

    def incentive_of(self, caller: HexAddress | str) -> int:
        return self.state.incentives[caller]

    #
    # Views
    #

    def get_benefactor(self, benefactor: HexAddress | str) -> Benefactor:
        address = normalise_address(benefactor)
        state = self.state
        return Benefactor(
            address=address,
            pending_contribution=self.contributions.pending_of(address),
            lifetime_contribution=self.contributions.lifetime_of(address),
            shares=self.share_ledger.balance_of(address),
            last_claim_watermark=state.watermarks[address],
            accrued=state.accrued[address],
            claimable=self.claimable(address),
        )

    def benefactors(self) -> list[HexAddress]:
        """Everyone who ever contributed, in first-seen order."""
        return list(self.state.lifetime.keys())

    def pending_benefactors(self) -> list[HexAddress]:
        """Participants of the next conversion round."""
        return [address for address, _ in self.state.pending.nonzero()]

    @property
    def total_shares(self) -> int:
        return self.share_ledger.total_shares

    @property
    def cumulative_value_per_share(self) -> int:
        return self.accrual.cumulative_value_per_share

    @property
    def total_pending(self) -> int:
        return self.state.total_pending

    #
    # Administrative layer
    #

    def _only_owner(self, caller: HexAddress | str):
        if normalise_address(caller) != self.config.owner:
            raise Unauthorized(f"{caller} is not the vault owner {self.config.owner}")

    def _reconfigure(self, caller: HexAddress | str, setting: str, value):
        self._only_owner(caller)
        old_value = getattr(self.config, setting)
        with self._atomic(f"set {setting}"):
            self.config = dataclasses.replace(self.config, **{setting: value})
            self._emit(ConfigurationChanged(setting=setting, old_value=old_value, new_value=getattr(self.config, setting)))
        logger.info("%s changed %s from %s to %s", caller, setting, old_value, getattr(self.config, setting))

    def set_conversion_incentive_bps(self, caller: HexAddress | str, bps: int):
        """Change the caller incentive.

        :raise VaultConfigurationError:
            Above :py:data:`~alignment_vault.config.MAX_CONVERSION_INCENTIVE_BPS`
        """
        self._reconfigure(caller, "conversion_incentive_bps", bps)

    def set_minimum_output(self, caller: HexAddress | str, minimum_output: int):
        self._reconfigure(caller, "minimum_output", minimum_output)

    def authorise_source(self, caller: HexAddress | str, source: HexAddress | str):
        self._reconfigure(caller, "authorised_sources", self.config.authorised_sources | {normalise_address(source)})

    def revoke_source(self, caller: HexAddress | str, source: HexAddress | str):
        source = normalise_address(source)
        if source not in self.config.authorised_sources:
            raise VaultConfigurationError(f"{source} is not an authorised source")
        self._reconfigure(caller, "authorised_sources", self.config.authorised_sources - {source})

    def transfer_ownership(self, caller: HexAddress | str, new_owner: HexAddress | str):
        self._reconfigure(caller, "owner", normalise_address(new_owner))

    #
    # Invariants
    #

    def verify_invariants(self):
        """Check ledger invariants.

        - Total shares equal the sum of balances

        - Total pending equals the sum of pending contributions

        - No watermark is ahead of the accumulator

        - Everything owed is covered by the yield held

        :raise InvariantViolation:
            If any check fails
        """
        state = self.state

        share_sum = state.shares.total()
        if state.total_shares != share_sum:
            raise InvariantViolation(f"total_shares {state.total_shares} != sum of balances {share_sum}")

        pending_sum = state.pending.total()
        if state.total_pending != pending_sum:
            raise InvariantViolation(f"total_pending {state.total_pending} != sum of pending {pending_sum}")

        owed_total = 0
        for address, watermark in state.watermarks.items():
            if watermark > state.cumulative_value_per_share:
                raise InvariantViolation(f"Watermark {watermark} of {address} ahead of accumulator {state.cumulative_value_per_share}")
        for address in state.shares.keys() | state.accrued.keys():
            owed_total += self.claims.claimable(address)

        if owed_total > state.yield_balance:
            raise InvariantViolation(f"Owed {owed_total} exceeds held yield {state.yield_balance}")

        if state.total_shares and state.deferred_yield:
            raise InvariantViolation(f"Deferred yield {state.deferred_yield} left with {state.total_shares} shares outstanding")

        if state.total_yield != state.yield_balance + state.total_claimed:
            raise InvariantViolation("Yield in and out do not add up")

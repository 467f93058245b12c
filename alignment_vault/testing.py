"""Test helpers.

Venues and payout rails with predictable or hostile behaviour,
for exercising the vault without a real chain.
"""

from eth_typing import HexAddress
from web3 import Web3

from alignment_vault.address_ledger import normalise_address
from alignment_vault.errors import SlippageExceeded
from alignment_vault.payout import BalanceBookPayoutRail
from alignment_vault.units import BPS_SCALE
from alignment_vault.venue import ConversionOutput


def make_address(byte: str) -> HexAddress:
    """Checksummed address made of one repeated byte, e.g. ``make_address("a1")``."""
    return Web3.to_checksum_address("0x" + byte * 20)


class PassThroughVenue:
    """Venue returning a fixed ratio of the input.

    :param rate_bps:
        Output as a fraction of input, ``10_000`` means 1:1
    """

    def __init__(self, rate_bps: int = BPS_SCALE):
        self.rate_bps = rate_bps
        self.conversions: list[tuple[int, int]] = []

    def convert(self, amount_in: int, minimum_output: int) -> ConversionOutput:
        output = amount_in * self.rate_bps // BPS_SCALE
        if output < minimum_output:
            raise SlippageExceeded(output, minimum_output)
        self.conversions.append((amount_in, output))
        return ConversionOutput(position_id=f"pass-through-{len(self.conversions)}", output=output)


class LyingVenue:
    """Venue that ignores the floor and returns whatever it likes."""

    def __init__(self, output: int):
        self.output = output

    def convert(self, amount_in: int, minimum_output: int) -> ConversionOutput:
        return ConversionOutput(position_id="lying", output=self.output)


class PayoutFailed(Exception):
    pass


class FailingPayoutRail(BalanceBookPayoutRail):
    """Payout rail that rejects transfers to selected recipients."""

    def __init__(self, blocked: set[HexAddress] | None = None):
        super().__init__()
        self.blocked = {normalise_address(a) for a in blocked or ()}

    def transfer(self, recipient: HexAddress, amount: int):
        if recipient in self.blocked:
            raise PayoutFailed(f"Transfer of {amount} to {recipient} rejected")
        super().transfer(recipient, amount)


class ReentrantPayoutRail(BalanceBookPayoutRail):
    """Payout rail whose recipient claims again from inside the transfer.

    Set :py:attr:`vault` after constructing the vault.
    """

    def __init__(self):
        super().__init__()
        self.vault = None
        self.reentrant_results: list[int] = []

    def transfer(self, recipient: HexAddress, amount: int):
        super().transfer(recipient, amount)
        if self.vault is not None and len(self.reentrant_results) < 3:
            self.reentrant_results.append(self.vault.claim_fees(recipient))


class InterruptingPayoutRail(BalanceBookPayoutRail):
    """Payout rail interrupted mid-transfer, as by Ctrl-C."""

    def transfer(self, recipient: HexAddress, amount: int):
        raise KeyboardInterrupt()

"""Vault ledger state.

All per-benefactor and global ledgers live in one :py:class:`VaultState`
owned by the vault aggregate. Components read and mutate it; the vault
checkpoints it around every public operation and rolls back on failure.
"""

import copy
from dataclasses import dataclass, field
from decimal import Decimal

from eth_typing import HexAddress

from alignment_vault.address_ledger import AddressLedger
from alignment_vault.units import convert_to_decimals

#: Per-benefactor maps of :py:class:`VaultState`
LEDGER_FIELDS = ("pending", "lifetime", "shares", "watermarks", "accrued", "incentives")

#: Global counters of :py:class:`VaultState`
SCALAR_FIELDS = (
    "total_pending",
    "total_shares",
    "cumulative_value_per_share",
    "deferred_yield",
    "yield_balance",
    "total_yield",
    "total_claimed",
    "share_dust",
    "round_count",
)


@dataclass(frozen=True, slots=True)
class Checkpoint:
    """Where to roll back to if an operation fails."""

    scalars: dict[str, int]
    marks: dict[str, int]


@dataclass
class VaultState:
    """Mutable ledgers of one vault."""

    #: Unconverted contribution per benefactor, removed once converted
    pending: AddressLedger = field(default_factory=AddressLedger)

    #: Lifetime contribution per benefactor, informational
    lifetime: AddressLedger = field(default_factory=AddressLedger)

    #: Share balance per benefactor, scale :py:data:`~alignment_vault.units.SHARE_SCALE`
    shares: AddressLedger = field(default_factory=AddressLedger)

    #: Accumulator value at each benefactor's last claim or settlement
    watermarks: AddressLedger = field(default_factory=AddressLedger)

    #: Yield settled to a benefactor before new shares were minted to them
    accrued: AddressLedger = field(default_factory=AddressLedger)

    #: Conversion incentives credited to callers and not yet withdrawn
    incentives: AddressLedger = field(default_factory=AddressLedger)

    #: Sum of ``pending``
    total_pending: int = 0

    #: Sum of ``shares``
    total_shares: int = 0

    #: Cumulative value per share, never decreases
    cumulative_value_per_share: int = 0

    #: Yield deposited while no shares existed
    deferred_yield: int = 0

    #: Yield received and not yet paid out
    yield_balance: int = 0

    #: All yield ever deposited
    total_yield: int = 0

    #: All yield ever paid out
    total_claimed: int = 0

    #: Shares lost to integer division across all rounds
    share_dust: int = 0

    #: Number of completed conversion rounds
    round_count: int = 0

    def checkpoint(self) -> Checkpoint:
        """Start journaling writes.

        Cost is independent of the number of benefactors.
        Checkpoints nest; the journal stays open until :py:meth:`commit`.
        """
        return Checkpoint(
            scalars={name: getattr(self, name) for name in SCALAR_FIELDS},
            marks={name: getattr(self, name).begin_journal() for name in LEDGER_FIELDS},
        )

    def rollback(self, checkpoint: Checkpoint):
        """Undo everything written since the checkpoint."""
        for name, mark in checkpoint.marks.items():
            getattr(self, name).rollback(mark)
        for name, value in checkpoint.scalars.items():
            setattr(self, name, value)

    def commit(self):
        """Close the journal after the outermost operation succeeded."""
        for name in LEDGER_FIELDS:
            getattr(self, name).end_journal()

    def snapshot(self) -> "VaultState":
        """Full independent copy, for inspection and tests."""
        return copy.deepcopy(self)


@dataclass(frozen=True, slots=True)
class Benefactor:
    """Read-only view of one benefactor's position."""

    address: HexAddress
    pending_contribution: int
    lifetime_contribution: int
    shares: int
    last_claim_watermark: int
    accrued: int
    claimable: int

    @property
    def claimable_decimal(self) -> Decimal:
        return convert_to_decimals(self.claimable)

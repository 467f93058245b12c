"""Vault notifications.

- Purely informational, for dashboards and indexers

- Events raised inside a call that later fails are never published,
  see :py:meth:`VaultEventLog.publish`
"""

import logging
from dataclasses import dataclass, field
from typing import Callable

from eth_typing import HexAddress

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VaultEvent:
    """Base class for vault notifications."""

    @property
    def event_name(self) -> str:
        return self.__class__.__name__


@dataclass(frozen=True, slots=True)
class ContributionRecorded(VaultEvent):
    source: HexAddress
    benefactor: HexAddress
    amount: int

    #: Benefactor's pending contribution after this call
    pending: int


@dataclass(frozen=True, slots=True)
class Converted(VaultEvent):
    round_id: int
    caller: HexAddress

    #: Pending contribution consumed by the round
    total_contribution: int

    #: Part handed to the venue, after the caller incentive
    amount_in: int

    output: int
    position_id: str
    new_shares: int
    participant_count: int
    incentive: int


@dataclass(frozen=True, slots=True)
class YieldDeposited(VaultEvent):
    amount: int

    #: Share supply the amount was divided by, zero if buffered
    total_shares: int

    cumulative_value_per_share: int

    #: Amount was buffered because no shares existed yet
    deferred: bool = False


@dataclass(frozen=True, slots=True)
class DeferredYieldApplied(VaultEvent):
    """Buffered yield reached the accumulator after a conversion.

    The amount was already announced by a deferred :py:class:`YieldDeposited`,
    do not count it twice.
    """

    amount: int
    total_shares: int
    cumulative_value_per_share: int


@dataclass(frozen=True, slots=True)
class Claimed(VaultEvent):
    benefactor: HexAddress
    amount: int
    watermark: int


@dataclass(frozen=True, slots=True)
class IncentiveWithdrawn(VaultEvent):
    caller: HexAddress
    amount: int


@dataclass(frozen=True, slots=True)
class ConfigurationChanged(VaultEvent):
    setting: str
    old_value: object
    new_value: object


#: Subscriber callback signature
EventSubscriber = Callable[[int, VaultEvent], None]


@dataclass
class VaultEventLog:
    """Published vault events in order.

    Each published event gets a sequence number starting from 1.
    """

    events: list[VaultEvent] = field(default_factory=list)
    subscribers: list[EventSubscriber] = field(default_factory=list)

    def subscribe(self, subscriber: EventSubscriber):
        self.subscribers.append(subscriber)

    def publish(self, events: list[VaultEvent]):
        """Publish events of a committed operation.

        A failing subscriber is logged and skipped.
        """
        for event in events:
            self.events.append(event)
            sequence = len(self.events)
            logger.debug("Event #%d: %s", sequence, event)
            for subscriber in self.subscribers:
                try:
                    subscriber(sequence, event)
                except Exception:
                    # The operation has already committed
                    logger.exception("Event subscriber %s failed on event #%d %s", subscriber, sequence, event.event_name)

    def filter(self, event_type: type) -> list:
        return [e for e in self.events if isinstance(e, event_type)]

    def __len__(self):
        return len(self.events)

"""Notification publishing."""

import logging

import pytest

from alignment_vault.errors import SlippageExceeded
from alignment_vault.events import Claimed, ContributionRecorded, Converted, VaultEventLog, YieldDeposited
from alignment_vault.testing import PassThroughVenue
from alignment_vault.vault import AlignmentVault

ONE = 10**18


def test_subscriber_sees_events_in_order(config, hook, keeper, alice):
    received = []
    log = VaultEventLog()
    log.subscribe(lambda sequence, event: received.append((sequence, event.event_name)))
    vault = AlignmentVault(config, PassThroughVenue(), event_log=log)

    vault.record_contribution(hook, alice, ONE)
    vault.convert(keeper)
    vault.deposit_yield(ONE)
    vault.claim_fees(alice)

    assert received == [
        (1, "ContributionRecorded"),
        (2, "Converted"),
        (3, "YieldDeposited"),
        (4, "Claimed"),
    ]
    assert [type(e) for e in log.events] == [ContributionRecorded, Converted, YieldDeposited, Claimed]


def test_reverted_call_publishes_nothing(config, hook, keeper, alice):
    received = []
    vault = AlignmentVault(config, PassThroughVenue(rate_bps=5_000))
    vault.event_log.subscribe(lambda sequence, event: received.append(event))
    vault.record_contribution(hook, alice, ONE)

    with pytest.raises(SlippageExceeded):
        vault.convert(keeper, minimum_output=ONE)

    assert [e.event_name for e in received] == ["ContributionRecorded"]


def test_noop_publishes_nothing(vault, keeper, alice):
    vault.convert(keeper)
    vault.claim_fees(alice)
    assert len(vault.event_log) == 0


def test_yield_event_fields(vault, hook, keeper, alice):
    vault.record_contribution(hook, alice, 2 * ONE)
    vault.convert(keeper)
    vault.deposit_yield(ONE)
    (event,) = vault.event_log.filter(YieldDeposited)
    assert event.amount == ONE
    assert event.total_shares == 2 * ONE
    assert event.cumulative_value_per_share == ONE // 2
    assert not event.deferred


def test_failing_subscriber_does_not_break_claim(config, hook, keeper, alice, caplog):
    received = []

    def broken(sequence, event):
        raise RuntimeError("Indexer offline")

    vault = AlignmentVault(config, PassThroughVenue())
    vault.event_log.subscribe(broken)
    vault.event_log.subscribe(lambda sequence, event: received.append(event.event_name))

    vault.record_contribution(hook, alice, ONE)
    vault.convert(keeper)
    vault.deposit_yield(ONE)
    with caplog.at_level(logging.ERROR, logger="alignment_vault.events"):
        assert vault.claim_fees(alice) == ONE

    assert "Indexer offline" in caplog.text
    assert received == ["ContributionRecorded", "Converted", "YieldDeposited", "Claimed"]
    assert vault.claimable(alice) == 0
    assert len(vault.event_log) == 4

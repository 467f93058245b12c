"""Owner-only configuration changes."""

import pytest

from alignment_vault.config import MAX_CONVERSION_INCENTIVE_BPS
from alignment_vault.errors import Unauthorized, VaultConfigurationError
from alignment_vault.events import ConfigurationChanged
from alignment_vault.testing import make_address

ONE = 10**18


def test_set_conversion_incentive(vault, owner, hook, keeper, alice, payout):
    vault.set_conversion_incentive_bps(owner, 100)
    assert vault.config.conversion_incentive_bps == 100

    (event,) = vault.event_log.filter(ConfigurationChanged)
    assert event.setting == "conversion_incentive_bps"
    assert event.old_value == 0
    assert event.new_value == 100

    vault.record_contribution(hook, alice, 10 * ONE)
    vault.convert(keeper)
    assert vault.incentive_of(keeper) == ONE // 10
    vault.withdraw_incentive(keeper)
    assert payout.balance_of(keeper) == ONE // 10


def test_incentive_capped(vault, owner):
    with pytest.raises(VaultConfigurationError):
        vault.set_conversion_incentive_bps(owner, MAX_CONVERSION_INCENTIVE_BPS + 1)
    assert vault.config.conversion_incentive_bps == 0
    assert vault.event_log.filter(ConfigurationChanged) == []


def test_non_owner_rejected(vault, alice, hook):
    with pytest.raises(Unauthorized):
        vault.set_conversion_incentive_bps(alice, 1)
    with pytest.raises(Unauthorized):
        vault.set_minimum_output(alice, 1)
    with pytest.raises(Unauthorized):
        vault.authorise_source(alice, alice)
    with pytest.raises(Unauthorized):
        vault.revoke_source(alice, hook)
    with pytest.raises(Unauthorized):
        vault.transfer_ownership(alice, alice)


def test_authorise_and_revoke_source(vault, owner, hook, alice):
    new_hook = make_address("0c")
    with pytest.raises(Unauthorized):
        vault.record_contribution(new_hook, alice, ONE)

    vault.authorise_source(owner, new_hook.lower())
    vault.record_contribution(new_hook, alice, ONE)

    vault.revoke_source(owner, hook)
    with pytest.raises(Unauthorized):
        vault.record_contribution(hook, alice, ONE)

    with pytest.raises(VaultConfigurationError):
        vault.revoke_source(owner, hook)

    assert vault.config.authorised_sources == frozenset([new_hook])


def test_set_minimum_output(vault, owner):
    vault.set_minimum_output(owner, 5 * ONE)
    assert vault.config.minimum_output == 5 * ONE
    with pytest.raises(VaultConfigurationError):
        vault.set_minimum_output(owner, -1)
    assert vault.config.minimum_output == 5 * ONE


def test_transfer_ownership(vault, owner, alice):
    vault.transfer_ownership(owner, alice)
    assert vault.config.owner == alice
    with pytest.raises(Unauthorized):
        vault.set_minimum_output(owner, 1)
    vault.set_minimum_output(alice, 1)

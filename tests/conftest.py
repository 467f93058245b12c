"""Shared vault fixtures.

Addresses are fixed so failures are reproducible.
"""

import pytest
from eth_typing import HexAddress

from alignment_vault.config import VaultConfig
from alignment_vault.payout import BalanceBookPayoutRail
from alignment_vault.testing import PassThroughVenue, make_address
from alignment_vault.vault import AlignmentVault


@pytest.fixture()
def owner() -> HexAddress:
    """Vault admin."""
    return make_address("01")


@pytest.fixture()
def hook() -> HexAddress:
    """Approved contribution source, e.g. a swap fee hook."""
    return make_address("0a")


@pytest.fixture()
def keeper() -> HexAddress:
    """Whoever triggers conversions."""
    return make_address("0b")


@pytest.fixture()
def alice() -> HexAddress:
    return make_address("a1")


@pytest.fixture()
def bob() -> HexAddress:
    return make_address("b2")


@pytest.fixture()
def carol() -> HexAddress:
    return make_address("c3")


@pytest.fixture()
def config(owner, hook) -> VaultConfig:
    """No caller incentive, so round maths stays exact."""
    return VaultConfig(owner=owner, authorised_sources=frozenset([hook]), conversion_incentive_bps=0)


@pytest.fixture()
def venue() -> PassThroughVenue:
    return PassThroughVenue()


@pytest.fixture()
def payout() -> BalanceBookPayoutRail:
    return BalanceBookPayoutRail()


@pytest.fixture()
def vault(config, venue, payout) -> AlignmentVault:
    return AlignmentVault(config, venue, payout)

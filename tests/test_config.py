"""Vault configuration and environment parsing."""

import dataclasses

import pytest

from alignment_vault.config import DEFAULT_CONVERSION_INCENTIVE_BPS, VaultConfig, read_vault_config_env
from alignment_vault.errors import VaultConfigurationError
from alignment_vault.testing import make_address


def test_read_config_from_env():
    owner = make_address("01")
    hook_1 = make_address("0a")
    hook_2 = make_address("0c")
    environ = {
        "ALIGNMENT_VAULT_OWNER": owner.lower(),
        "ALIGNMENT_VAULT_AUTHORISED_SOURCES": f"{hook_1}, {hook_2.lower()},",
        "ALIGNMENT_VAULT_CONVERSION_INCENTIVE_BPS": "25",
        "ALIGNMENT_VAULT_MINIMUM_OUTPUT": "1000",
    }
    config = read_vault_config_env(environ)
    assert config.owner == owner
    assert config.authorised_sources == frozenset([hook_1, hook_2])
    assert config.conversion_incentive_bps == 25
    assert config.minimum_output == 1000
    assert config.is_authorised_source(hook_2.lower())


def test_env_defaults():
    config = read_vault_config_env({"ALIGNMENT_VAULT_OWNER": make_address("01")})
    assert config.authorised_sources == frozenset()
    assert config.conversion_incentive_bps == DEFAULT_CONVERSION_INCENTIVE_BPS
    assert config.minimum_output == 0


def test_env_missing_owner():
    with pytest.raises(VaultConfigurationError):
        read_vault_config_env({})


def test_env_bad_integer():
    with pytest.raises(VaultConfigurationError):
        read_vault_config_env({"ALIGNMENT_VAULT_OWNER": make_address("01"), "ALIGNMENT_VAULT_MINIMUM_OUTPUT": "lots"})


@pytest.mark.parametrize(
    "kwargs",
    [
        {"conversion_incentive_bps": -1},
        {"conversion_incentive_bps": 501},
        {"conversion_incentive_bps": 1.5},
        {"minimum_output": -1},
        {"authorised_sources": frozenset(["0xnope"])},
    ],
)
def test_config_validation(kwargs):
    with pytest.raises(VaultConfigurationError):
        VaultConfig(owner=make_address("01"), **kwargs)


def test_bad_owner():
    with pytest.raises(VaultConfigurationError):
        VaultConfig(owner="not an address")


def test_config_is_frozen():
    config = VaultConfig(owner=make_address("01"))
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.minimum_output = 5
    assert not config.is_authorised_source("junk")

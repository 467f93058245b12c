"""Vault administrative configuration.

- Caller incentive and slippage floor used by :py:meth:`AlignmentVault.convert`

- Approved contribution sources, e.g. fee-collecting swap hooks

- Can be read from environment variables with :py:func:`read_vault_config_env`
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping

from eth_typing import HexAddress

from alignment_vault.address_ledger import normalise_address
from alignment_vault.errors import InvalidBenefactor, VaultConfigurationError

logger = logging.getLogger(__name__)


#: Default caller incentive for triggering a conversion, 0.1%
DEFAULT_CONVERSION_INCENTIVE_BPS = 10

#: Hard cap the owner cannot exceed, 5%
MAX_CONVERSION_INCENTIVE_BPS = 500

#: Environment variable names read by :py:func:`read_vault_config_env`
ENV_OWNER = "ALIGNMENT_VAULT_OWNER"
ENV_AUTHORISED_SOURCES = "ALIGNMENT_VAULT_AUTHORISED_SOURCES"
ENV_CONVERSION_INCENTIVE_BPS = "ALIGNMENT_VAULT_CONVERSION_INCENTIVE_BPS"
ENV_MINIMUM_OUTPUT = "ALIGNMENT_VAULT_MINIMUM_OUTPUT"


@dataclass(frozen=True, slots=True)
class VaultConfig:
    """Administrative parameters of a vault.

    Immutable. The admin layer swaps in a new instance with
    :py:func:`dataclasses.replace`.
    """

    #: Address allowed to change the configuration
    owner: HexAddress

    #: Sources allowed to call ``record_contribution``
    authorised_sources: frozenset[HexAddress] = field(default_factory=frozenset)

    #: Share of each converted pool paid to whoever triggered the conversion
    conversion_incentive_bps: int = DEFAULT_CONVERSION_INCENTIVE_BPS

    #: Vault-wide floor for venue output, in raw units.
    #:
    #: The effective floor of a conversion is the larger of this
    #: and the caller supplied ``minimum_output``.
    minimum_output: int = 0

    def __post_init__(self):
        try:
            object.__setattr__(self, "owner", normalise_address(self.owner))
            object.__setattr__(self, "authorised_sources", frozenset(normalise_address(a) for a in self.authorised_sources))
        except InvalidBenefactor as e:
            raise VaultConfigurationError(f"Bad address in vault config: {e}") from e

        bps = self.conversion_incentive_bps
        if type(bps) is not int or not (0 <= bps <= MAX_CONVERSION_INCENTIVE_BPS):
            raise VaultConfigurationError(f"conversion_incentive_bps must be an int between 0 and {MAX_CONVERSION_INCENTIVE_BPS}, got {bps!r}")

        if type(self.minimum_output) is not int or self.minimum_output < 0:
            raise VaultConfigurationError(f"minimum_output must be a non-negative int, got {self.minimum_output!r}")

    def is_authorised_source(self, source: HexAddress | str) -> bool:
        try:
            return normalise_address(source) in self.authorised_sources
        except InvalidBenefactor:
            return False


def _read_int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value.strip())
    except ValueError as e:
        raise VaultConfigurationError(f"Environment variable {name} is not an integer: {value!r}") from e


def read_vault_config_env(environ: Mapping[str, str] | None = None) -> VaultConfig:
    """Read vault configuration from environment variables.

    - ``ALIGNMENT_VAULT_OWNER``: owner address, required

    - ``ALIGNMENT_VAULT_AUTHORISED_SOURCES``: comma separated list of addresses

    - ``ALIGNMENT_VAULT_CONVERSION_INCENTIVE_BPS``: caller incentive in bps

    - ``ALIGNMENT_VAULT_MINIMUM_OUTPUT``: vault-wide output floor in raw units

    :param environ:
        Defaults to ``os.environ``

    :raise VaultConfigurationError:
        If the owner is missing or a value cannot be parsed
    """
    if environ is None:
        environ = os.environ

    owner = environ.get(ENV_OWNER)
    if not owner:
        raise VaultConfigurationError(f"Environment variable {ENV_OWNER} is not set")

    sources_raw = environ.get(ENV_AUTHORISED_SOURCES, "")
    sources = frozenset(s.strip() for s in sources_raw.split(",") if s.strip())

    config = VaultConfig(
        owner=owner.strip(),
        authorised_sources=sources,
        conversion_incentive_bps=_read_int(environ, ENV_CONVERSION_INCENTIVE_BPS, DEFAULT_CONVERSION_INCENTIVE_BPS),
        minimum_output=_read_int(environ, ENV_MINIMUM_OUTPUT, 0),
    )
    logger.info("Read vault config from environment, owner %s, %d authorised sources", config.owner, len(config.authorised_sources))
    return config

"""Vault exceptions.

Every exception aborts the whole triggering call. The vault restores
its state before the exception reaches the caller, so catching one of these
never leaves a half-applied operation behind.
"""


class VaultError(Exception):
    """Base class for all vault failures."""


class InvalidAmount(VaultError, ValueError):
    """Non-positive or non-integer amount to contribute or deposit."""


class InvalidBenefactor(VaultError, ValueError):
    """Benefactor or caller identity is not a valid address."""


class SlippageExceeded(VaultError):
    """Venue conversion output fell below the floor.

    Raised either by the venue itself or by the vault re-checking
    the realised output.
    """

    def __init__(self, output: int, minimum_output: int):
        super().__init__(f"Conversion output {output} below minimum {minimum_output}")
        self.output = output
        self.minimum_output = minimum_output


class Unauthorized(VaultError):
    """Caller is not an approved contribution source, or not the owner."""


class VaultConfigurationError(VaultError):
    """Configuration value out of bounds or unparseable."""


class InvariantViolation(VaultError, AssertionError):
    """Ledger invariants do not hold.

    Never raised during normal operation; see
    :py:meth:`alignment_vault.vault.AlignmentVault.verify_invariants`.
    """

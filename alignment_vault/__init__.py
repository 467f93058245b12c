"""Value-accrual vault accounting.

Benefactors contribute value, which is pooled and converted in rounds into
a yield-bearing venue position. Each round mints shares pro-rata to that
round's contributions. Yield deposited later is spread over all shares with a
cumulative value-per-share accumulator, and benefactors claim only what has
accrued since their last claim.

See :py:class:`alignment_vault.vault.AlignmentVault` to get started.
"""

import sys


#: Minimum required Python version to run this package
MIN_PYTHON_VERSION = (3, 10)


def _check_python_version():
    """Try early abort if the Python version is too old."""

    # Use Python tuple comparison for version numbers
    if sys.version_info < MIN_PYTHON_VERSION:
        raise RuntimeError(f"alignment-vault needs Python {MIN_PYTHON_VERSION[0]}.{MIN_PYTHON_VERSION[1]} or later")


_check_python_version()

"""Vault reporting tables for dashboards and notebooks."""

from decimal import Decimal

import pandas as pd

from alignment_vault.units import SHARE_SCALE, convert_to_decimals
from alignment_vault.vault import AlignmentVault


def build_benefactor_table(vault: AlignmentVault) -> pd.DataFrame:
    """One row per benefactor, amounts as human-readable decimals.

    Columns: pending, lifetime, shares, share_pct, claimable.
    Sorted by share balance, largest first.
    """
    rows = []
    for address in vault.benefactors():
        b = vault.get_benefactor(address)
        rows.append(
            {
                "benefactor": b.address,
                "pending": convert_to_decimals(b.pending_contribution),
                "lifetime": convert_to_decimals(b.lifetime_contribution),
                "shares": convert_to_decimals(b.shares),
                "share_pct": vault.share_ledger.share_of_supply(address) * 100,
                "claimable": b.claimable_decimal,
            }
        )

    df = pd.DataFrame(rows, columns=["benefactor", "pending", "lifetime", "shares", "share_pct", "claimable"])
    return df.sort_values("shares", ascending=False, kind="stable").set_index("benefactor")


def summarise_vault(vault: AlignmentVault) -> pd.Series:
    """Key vault metrics as a series."""
    state = vault.state
    return pd.Series(
        {
            "Benefactors": len(vault.benefactors()),
            "Conversion rounds": state.round_count,
            "Total shares": convert_to_decimals(state.total_shares),
            "Pending contribution": convert_to_decimals(state.total_pending),
            "Value per share": Decimal(state.cumulative_value_per_share) / SHARE_SCALE,
            "Yield deposited": convert_to_decimals(state.total_yield),
            "Yield claimed": convert_to_decimals(state.total_claimed),
            "Yield held": convert_to_decimals(state.yield_balance),
            "Deferred yield": convert_to_decimals(state.deferred_yield),
            "Share dust": convert_to_decimals(state.share_dust),
        }
    )

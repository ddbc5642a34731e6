# flows_pipeline/transform/recipients.py
#
# Select the recipient addresses whose profiles are worth looking up.
#
# Design decisions:
#   - Only terminal grants (outgoing rate exactly 0 and a non-empty recipient)
#     produce recipient nodes in the diagram, so only their addresses are sent
#     to the profile endpoint.
#   - Addresses are lowercased because the profile mapping is keyed by the
#     lowercase address; duplicates are removed keeping first-seen order so
#     the request is deterministic for a given grant list.
#
# Invariant: expects the validated grants DataFrame (rates already Float64).
from __future__ import annotations

import polars as pl


def is_terminal() -> pl.Expr:
    """Boolean expression: the grant pays out to a wallet, not to sub-grants."""
    return (pl.col("monthly_outgoing_flow_rate") == 0.0) & (pl.col("recipient") != "")


def terminal_recipients(grants_df: pl.DataFrame) -> list[str]:
    """Return the lowercased, de-duplicated recipients of terminal grants."""
    if grants_df.is_empty():
        return []
    recipients = (
        grants_df.filter(is_terminal())
        .select(pl.col("recipient").str.to_lowercase())
        .unique(maintain_order=True)
    )
    return recipients["recipient"].to_list()

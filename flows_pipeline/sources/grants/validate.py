# flows_pipeline/sources/grants/validate.py
#
# Validate and clean the grants DataFrame.
#
# Design decisions:
#   - Flow rates arrive as decimal strings. They are cast with strict=False so
#     an unparsable string becomes null instead of raising, then null, NaN and
#     +/-inf are all mapped to 0.0. A rate that cannot be read therefore counts
#     as "== 0" for the terminal-grant check and as "not > 0" for the inbound
#     link check, with no NaN comparisons leaking into the graph builder.
#   - Deduplication is on id: grant ids become graph node ids and must be
#     unique. The first occurrence wins so output order follows the response.
#   - An empty flowId is the same as no upstream grant.
#
# Invariants:
#   - id is non-null, non-blank and unique.
#   - title and recipient are never null ("" when absent); recipient is trimmed.
#   - both rate columns are finite Float64.
from __future__ import annotations

import polars as pl

from flows_pipeline.log import log

RATE_COLUMNS: tuple[str, ...] = ("monthly_incoming_flow_rate", "monthly_outgoing_flow_rate")


def parse_rate(column: str) -> pl.Expr:
    """Expression turning a decimal-string column into a finite Float64 column."""
    parsed = pl.col(column).str.strip_chars().cast(pl.Float64, strict=False)
    return pl.when(parsed.is_finite()).then(parsed).otherwise(pl.lit(0.0)).alias(column)


def validate_grants(df: pl.DataFrame) -> pl.DataFrame:
    """Validate and clean a grants DataFrame from parse_grants.

    Steps applied:
        1. Drop rows whose id is null or blank.
        2. Deduplicate by id, keeping first occurrence.
        3. Normalise title, recipient, flow_id and is_flow.
        4. Parse both flow-rate columns into Float64.

    Args:
        df: DataFrame returned by parse_grants().

    Returns:
        Cleaned DataFrame, same row order as the input.
    """
    total = len(df)

    # Step 1: require an id.
    df = df.filter(pl.col("id").is_not_null() & (pl.col("id").str.strip_chars() != ""))

    # Step 2: deduplicate by id.
    df = df.unique(subset=["id"], keep="first", maintain_order=True)

    # Steps 3 + 4.
    flow_id = pl.col("flow_id").str.strip_chars()
    df = df.with_columns(
        pl.col("title").fill_null(""),
        pl.col("recipient").fill_null("").str.strip_chars(),
        pl.when(flow_id == "").then(pl.lit(None, dtype=pl.Utf8)).otherwise(pl.col("flow_id")).alias("flow_id"),
        pl.col("is_flow").fill_null(False),
        *[parse_rate(column) for column in RATE_COLUMNS],
    )

    dropped = total - len(df)
    if dropped:
        log(f"  Grants: dropped {dropped} row(s) without a usable id or duplicated")
    return df

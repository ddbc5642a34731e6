# flows_pipeline/sources/profiles/parse.py
#
# Parse the bulk profile lookup into a DataFrame keyed by address.
#
# Design decisions:
#   - The endpoint answers {address: [profile, ...]}. Only the first profile
#     of each list is kept; an address with an empty list has no profile.
#   - Addresses are lowercased here so lookups from the graph builder can use
#     lowercase keys regardless of how the endpoint echoes them back. When two
#     spellings collapse to the same key the first one wins.
#   - Only username, display name, fid and pfp_url are extracted; all four
#     end up on the recipient node returned by /api/graph. A fid outside the
#     Int64 range is treated as absent. Any error polars still raises while
#     building the frame is re-raised as ParseError.
#
# Invariants:
#   - address is lowercase and unique.
#   - Output columns and dtypes equal PROFILES_SCHEMA, also when empty.
from __future__ import annotations

from typing import Any

import polars as pl

from flows_pipeline.sources.base import INT64_MAX, INT64_MIN, ParseError

PROFILES_SCHEMA: dict[str, pl.DataType | type[pl.DataType]] = {
    "address": pl.Utf8,
    "username": pl.Utf8,
    "display_name": pl.Utf8,
    "fid": pl.Int64,
    "pfp_url": pl.Utf8,
}


def _as_fid(value: Any) -> int | None:
    if not isinstance(value, int) or isinstance(value, bool):
        return None
    if not INT64_MIN <= value <= INT64_MAX:
        return None
    return value


def _extract_profile(address: str, profile: dict[str, Any]) -> dict[str, Any]:
    return {
        "address": address.lower(),
        "username": str(profile.get("username") or ""),
        "display_name": str(profile.get("display_name") or ""),
        "fid": _as_fid(profile.get("fid")),
        "pfp_url": profile.get("pfp_url") if isinstance(profile.get("pfp_url"), str) else None,
    }


def parse_profiles(payload: Any) -> pl.DataFrame:
    """Turn the address → profiles mapping into one row per address.

    Args:
        payload: Decoded JSON body returned by download_profiles().

    Returns:
        DataFrame with the first profile of every address that has one.

    Raises:
        ParseError: if the payload is not a mapping of address to list.
    """
    if not isinstance(payload, dict):
        raise ParseError("Profile response is not a JSON object")

    rows: list[dict[str, Any]] = []
    for address, users in payload.items():
        if not isinstance(users, list):
            raise ParseError(f"Profile response for {address} is not a list")
        if not users or not isinstance(users[0], dict):
            continue
        rows.append(_extract_profile(str(address), users[0]))

    if not rows:
        return pl.DataFrame(schema=PROFILES_SCHEMA)

    try:
        df = pl.DataFrame(rows, schema=PROFILES_SCHEMA)
    except pl.exceptions.PolarsError as err:
        raise ParseError(f"Profile response does not fit the profiles schema: {err}") from err
    return df.unique(subset=["address"], keep="first", maintain_order=True)

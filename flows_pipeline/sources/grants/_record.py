# flows_pipeline/sources/grants/_record.py
#
# Internal module shared between parse and validate.
#
# Design decisions:
#   - GRANTS_SCHEMA is the single source of truth for the column names and
#     types of the grants DataFrame as it leaves parse(). Flow rates are kept
#     as raw strings here; validate() turns them into Float64.
#   - extract_record coerces every field to the schema type up front so that
#     pl.DataFrame construction never fails on a stray int-vs-string value
#     coming from the GraphQL endpoint. Integers outside the Int64 range
#     become null. Any error polars still raises is re-raised as ParseError.
from __future__ import annotations

from typing import Any

import polars as pl

from flows_pipeline.sources.base import INT64_MAX, INT64_MIN, ParseError

GRANTS_SCHEMA: dict[str, pl.DataType | type[pl.DataType]] = {
    "id": pl.Utf8,
    "title": pl.Utf8,
    "status": pl.Int64,
    "recipient": pl.Utf8,
    "monthly_incoming_flow_rate": pl.Utf8,
    "monthly_outgoing_flow_rate": pl.Utf8,
    "flow_id": pl.Utf8,
    "is_flow": pl.Boolean,
}


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not INT64_MIN <= number <= INT64_MAX:
        return None
    return number


def extract_record(record: Any, index: int) -> dict[str, Any]:
    """Extract a flat dict from one ``grantss.items`` element.

    Args:
        record: Single grant object from the GraphQL response.
        index:  Position in the items list, used in error messages.

    Returns:
        Flat dict whose keys and value types match GRANTS_SCHEMA.

    Raises:
        ParseError: if the element is not an object or has no ``id``.
    """
    if not isinstance(record, dict):
        raise ParseError(f"Grant item {index} is not an object")
    if record.get("id") is None:
        raise ParseError(f"Grant item {index} has no id")

    return {
        "id": str(record["id"]),
        "title": _as_str(record.get("title")),
        "status": _as_int(record.get("status")),
        "recipient": _as_str(record.get("recipient")),
        "monthly_incoming_flow_rate": _as_str(record.get("monthlyIncomingFlowRate")),
        "monthly_outgoing_flow_rate": _as_str(record.get("monthlyOutgoingFlowRate")),
        "flow_id": _as_str(record.get("flowId")),
        "is_flow": bool(record.get("isFlow", False)),
    }


def build_grants_df(records: list[Any]) -> pl.DataFrame:
    """Build a typed grants DataFrame from raw GraphQL items."""
    rows = [extract_record(r, i) for i, r in enumerate(records)]
    try:
        return pl.DataFrame(rows, schema=GRANTS_SCHEMA)
    except pl.exceptions.PolarsError as err:
        raise ParseError(f"Grant items do not fit the grants schema: {err}") from err

# flows_pipeline/sources/grants/parse.py
#
# Parse the grant query response into a staging DataFrame.
#
# Design decisions:
#   - The endpoint answers {"data": {"grantss": {"items": [...]}}}. Any step of
#     that path missing (or of the wrong type) is a ParseError, which the
#     controller surfaces exactly like a FetchError.
#   - GraphQL reports query failures as {"errors": [...]} with HTTP 200; the
#     first error message is included in the ParseError so the user sees why.
#   - Flow rates stay raw strings; turning them into numbers is a cleaning
#     rule and lives in validate.py.
#
# Invariants:
#   - Output columns and dtypes equal GRANTS_SCHEMA, also for zero items.
#   - Row order equals the items order of the response.
from __future__ import annotations

from typing import Any

import polars as pl

from flows_pipeline.sources.base import ParseError
from flows_pipeline.sources.grants._record import GRANTS_SCHEMA, build_grants_df


def _first_graphql_error(payload: dict[str, Any]) -> str | None:
    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict) and first.get("message"):
            return str(first["message"])
    return None


def parse_grants(payload: Any) -> pl.DataFrame:
    """Extract ``data.grantss.items`` into a typed grants DataFrame.

    Args:
        payload: Decoded JSON body returned by download_grants().

    Returns:
        Polars DataFrame with one row per grant item.

    Raises:
        ParseError: if the expected response shape is absent.
    """
    if not isinstance(payload, dict):
        raise ParseError("Grant response is not a JSON object")

    data = payload.get("data")
    if not isinstance(data, dict):
        detail = _first_graphql_error(payload)
        message = "Grant response has no data object"
        raise ParseError(f"{message}: {detail}" if detail else message)

    grantss = data.get("grantss")
    if not isinstance(grantss, dict):
        raise ParseError("Grant response has no grantss object")

    items = grantss.get("items")
    if not isinstance(items, list):
        raise ParseError("Grant response has no items list")

    if not items:
        return pl.DataFrame(schema=GRANTS_SCHEMA)

    return build_grants_df(items)

# flows_pipeline/sources/base.py
#
# Protocol and error taxonomy shared by all source implementations.
#
# Design decisions:
#   - Uses typing.Protocol (structural subtyping) rather than ABC so that
#     concrete source classes don't need to inherit from a base.
#   - Downloading is NOT part of the protocol: the grant query is a POST with
#     no input while the profile lookup is a GET keyed by addresses, so each
#     source exposes its own module-level download_* function. The protocol
#     covers the pure steps:
#       parse     — raw JSON payload → typed Polars DataFrame.
#       validate  — DataFrame in, clean DataFrame out.
#   - FetchError and ParseError share a SourceError base so callers that only
#     want to surface "something went wrong" can catch one type.
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import polars as pl

# Bounds of the Int64 columns; larger JSON integers are read as null.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class SourceError(Exception):
    """Base class for every failure raised by a source."""


class FetchError(SourceError):
    """Raised when an endpoint answers with a non-2xx status or is unreachable.

    ``status`` is the HTTP status code, or None for transport failures
    (DNS, connection refused, timeout).
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ParseError(SourceError):
    """Raised when a response body does not have the expected shape."""


@runtime_checkable
class SourcePipeline(Protocol):
    """Contract for source implementations.

    Invariant: validate(df) must accept the DataFrame returned by parse.
    """

    name: str

    def parse(self, payload: Any) -> pl.DataFrame:
        """Parse a decoded JSON payload into a typed DataFrame.

        Raises:
            ParseError: if the payload does not have the expected shape.
        """
        ...

    def validate(self, df: pl.DataFrame) -> pl.DataFrame:
        """Clean and deduplicate a parsed DataFrame. Never raises on bad rows;
        invalid rows are dropped."""
        ...

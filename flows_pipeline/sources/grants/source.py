# flows_pipeline/sources/grants/source.py
from __future__ import annotations

from typing import Any

import polars as pl

from flows_pipeline.sources.grants.parse import parse_grants
from flows_pipeline.sources.grants.validate import validate_grants


class GrantsSource:
    """SourcePipeline for the grant GraphQL endpoint."""

    name = "grants"

    def parse(self, payload: Any) -> pl.DataFrame:
        return parse_grants(payload)

    def validate(self, df: pl.DataFrame) -> pl.DataFrame:
        return validate_grants(df)

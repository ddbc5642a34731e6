# flows_pipeline/sources/profiles/source.py
from __future__ import annotations

from typing import Any

import polars as pl

from flows_pipeline.sources.profiles.parse import parse_profiles


class ProfilesSource:
    """SourcePipeline for the recipient profile lookup."""

    name = "profiles"

    def parse(self, payload: Any) -> pl.DataFrame:
        return parse_profiles(payload)

    def validate(self, df: pl.DataFrame) -> pl.DataFrame:
        # Profiles without a username cannot produce a profile link.
        return df.filter(pl.col("username") != "")

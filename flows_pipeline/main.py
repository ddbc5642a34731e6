# flows_pipeline/main.py
#
# Source orchestrator: download → parse → validate for each endpoint.
#
# Design decisions:
#   - Two entry points instead of one run_pipeline: the grant list is needed
#     before the profile lookup can be keyed, and the caller (the API
#     controller) publishes the grant list as soon as it is available instead
#     of waiting for profiles.
#   - fetch_grants propagates FetchError / ParseError unchanged. The caller
#     turns them into the visible error state.
#   - fetch_profiles never raises a SourceError: a failed lookup is logged and
#     an empty frame is returned, so the diagram still renders with raw
#     addresses as labels.
#   - Each step logs progress to stdout, like every other module here.
from __future__ import annotations

import httpx
import polars as pl

from flows_pipeline.config import PipelineConfig
from flows_pipeline.log import log
from flows_pipeline.sources.base import SourceError
from flows_pipeline.sources.grants.download import download_grants
from flows_pipeline.sources.grants.source import GrantsSource
from flows_pipeline.sources.profiles.download import download_profiles
from flows_pipeline.sources.profiles.parse import PROFILES_SCHEMA
from flows_pipeline.sources.profiles.source import ProfilesSource
from flows_pipeline.transform.recipients import terminal_recipients


def fetch_grants(config: PipelineConfig, client: httpx.Client) -> pl.DataFrame:
    """Download, parse and validate the active grant list.

    Raises:
        flows_pipeline.sources.base.FetchError: non-2xx or unreachable endpoint.
        flows_pipeline.sources.base.ParseError: unexpected response shape.
    """
    source = GrantsSource()
    log("Fetching grants...")
    payload = download_grants(
        client,
        config.source_urls.grants,
        limit=config.grants_limit,
        timeout=config.fetch_timeout,
    )
    df = source.validate(source.parse(payload))
    log(f"  Grants: {len(df):,} rows")
    return df


def fetch_profiles(config: PipelineConfig, grants_df: pl.DataFrame, client: httpx.Client) -> pl.DataFrame:
    """Look up profiles for the terminal recipients of ``grants_df``.

    Returns:
        Profiles DataFrame (see PROFILES_SCHEMA). Empty when there is nothing
        to look up or when the lookup failed.
    """
    addresses = terminal_recipients(grants_df)
    if not addresses:
        log("  Profiles: no terminal recipients, skipping lookup")
        return pl.DataFrame(schema=PROFILES_SCHEMA)

    source = ProfilesSource()
    log(f"Fetching profiles for {len(addresses)} recipient(s)...")
    try:
        payload = download_profiles(
            client,
            config.source_urls.profiles,
            addresses,
            api_key=config.profiles_api_key,
            timeout=config.fetch_timeout,
        )
        df = source.validate(source.parse(payload))
    except SourceError as err:
        log(f"  Error fetching recipient profiles: {err}")
        return pl.DataFrame(schema=PROFILES_SCHEMA)

    log(f"  Profiles: {len(df):,} resolved")
    return df

# flows_pipeline/config.py
#
# Source configuration loaded from environment variables.
#
# Design decisions:
#   - Uses a frozen dataclass (not pydantic Settings) because the source layer
#     is plain IO + Polars and pydantic is reserved for the API layer.
#   - Every variable has a default so the service works out of the box against
#     the public endpoints. The profile API key defaults to the public docs key.
#   - SOURCE_URLS are declared here so every source module reads from one place.
#     They can be overridden via environment variables for testing or mirror use.
from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

DEFAULT_GRANTS_URL = "https://ponder-schemaonchain-production.up.railway.app/"
DEFAULT_PROFILES_URL = "https://api.neynar.com/v2/farcaster/user/bulk-by-address"
DEFAULT_PROFILES_API_KEY = "NEYNAR_API_DOCS"


@dataclass(frozen=True)
class SourceUrls:
    """Endpoints for each external data source.

    Invariant: both fields are non-empty absolute URLs.
    """

    grants: str = DEFAULT_GRANTS_URL
    profiles: str = DEFAULT_PROFILES_URL


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable source configuration.

    Invariants:
      - fetch_timeout and grants_limit are positive integers.
      - profiles_api_key is sent verbatim in the ``x-api-key`` header.
    """

    source_urls: SourceUrls = field(default_factory=SourceUrls)
    profiles_api_key: str = DEFAULT_PROFILES_API_KEY
    fetch_timeout: int = 30
    grants_limit: int = 1000


def _positive_int(name: str, default: str) -> int:
    raw = os.environ.get(name, default)
    try:
        value = int(raw)
    except ValueError as err:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from err
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def load_config() -> PipelineConfig:
    """Build PipelineConfig from environment variables.

    Raises:
        ValueError: if FLOWS_FETCH_TIMEOUT or FLOWS_GRANTS_LIMIT is not a
            positive integer.
    """
    source_urls = SourceUrls(
        grants=os.environ.get("FLOWS_GRANTS_URL", DEFAULT_GRANTS_URL),
        profiles=os.environ.get("FLOWS_PROFILES_URL", DEFAULT_PROFILES_URL),
    )
    return PipelineConfig(
        source_urls=source_urls,
        profiles_api_key=os.environ.get("FLOWS_PROFILES_API_KEY", DEFAULT_PROFILES_API_KEY),
        fetch_timeout=_positive_int("FLOWS_FETCH_TIMEOUT", "30"),
        grants_limit=_positive_int("FLOWS_GRANTS_LIMIT", "1000"),
    )

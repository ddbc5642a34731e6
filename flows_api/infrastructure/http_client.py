# flows_api/infrastructure/http_client.py
from __future__ import annotations

import httpx

_client: httpx.Client | None = None


def get_client() -> httpx.Client:
    global _client  # noqa: PLW0603
    if _client is None:
        _client = httpx.Client(follow_redirects=True)
    return _client


def set_client(client: httpx.Client) -> None:
    """Used by tests to inject a client backed by httpx.MockTransport."""
    global _client  # noqa: PLW0603
    _client = client


def close_client() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        _client.close()
        _client = None

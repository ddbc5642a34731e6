# flows_pipeline/sources/profiles/download.py
#
# IO-only: bulk-lookup recipient profiles by wallet address.
#
# Design decisions:
#   - One GET for the whole address set. The addresses are comma-joined into a
#     single query parameter; httpx encodes the commas as %2C.
#   - An empty address set short-circuits with {} and no network call. That is
#     a no-op, not an error.
#   - Errors are raised (FetchError / ParseError) like any other source; the
#     decision to fail softly belongs to the orchestrator, not to IO.
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx

from flows_pipeline.log import log
from flows_pipeline.sources.base import FetchError, ParseError


def download_profiles(
    client: httpx.Client,
    endpoint: str,
    addresses: Sequence[str],
    api_key: str,
    timeout: int = 30,
) -> Any:
    """GET profiles for ``addresses`` and return the decoded JSON body.

    Args:
        client:    HTTP client used for the request.
        endpoint:  Bulk-by-address lookup URL.
        addresses: Wallet addresses to look up. May be empty.
        api_key:   Value for the ``x-api-key`` header.
        timeout:   HTTP timeout in seconds.

    Returns:
        The decoded JSON payload, or {} when ``addresses`` is empty.

    Raises:
        FetchError: on a non-2xx status or a transport failure.
        ParseError: if the body is not JSON.
    """
    if not addresses:
        return {}

    try:
        response = client.get(
            endpoint,
            params={"addresses": ",".join(addresses), "address_types": ""},
            headers={
                "accept": "application/json",
                "x-neynar-experimental": "false",
                "x-api-key": api_key,
            },
            timeout=timeout,
        )
    except httpx.HTTPError as err:
        raise FetchError(f"Failed to fetch recipient profiles: {err}") from err

    if not response.is_success:
        raise FetchError(
            f"Failed to fetch recipient profiles: status {response.status_code}",
            status=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as err:
        raise ParseError("Profile endpoint returned a body that is not JSON") from err

    log(f"  Profiles: looked up {len(addresses)} address(es)")
    return payload

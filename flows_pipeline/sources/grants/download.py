# flows_pipeline/sources/grants/download.py
#
# IO-only: issue the grant query against the GraphQL endpoint.
#
# Design decisions:
#   - One POST, no pagination: the query asks for up to `limit` active grants
#     (1000 by default), which covers the whole data set.
#   - The httpx.Client is injected so the API layer can share one connection
#     pool and tests can swap in an httpx.MockTransport.
#   - A non-2xx answer becomes FetchError carrying the status code. Transport
#     failures also become FetchError (status None) so the controller has a
#     single error type to surface.
#   - No retry: a failed load is shown to the user as-is.
from __future__ import annotations

from typing import Any

import httpx

from flows_pipeline.log import log
from flows_pipeline.sources.base import FetchError, ParseError

OPERATION_NAME = "MyQuery"

_QUERY_TEMPLATE = """query MyQuery {{
  grantss(limit: {limit}, where: {{isActive: true}}) {{
    items {{
      title
      status
      recipient
      monthlyIncomingFlowRate
      monthlyOutgoingFlowRate
      flowId
      isFlow
      id
    }}
  }}
}}"""


def build_grants_query(limit: int = 1000) -> str:
    """Return the GraphQL document requesting up to ``limit`` active grants."""
    return _QUERY_TEMPLATE.format(limit=limit)


def download_grants(
    client: httpx.Client,
    endpoint: str,
    limit: int = 1000,
    timeout: int = 30,
) -> Any:
    """POST the grant query and return the decoded JSON body.

    Args:
        client:   HTTP client used for the request.
        endpoint: GraphQL endpoint URL.
        limit:    Maximum number of grant records requested.
        timeout:  HTTP timeout in seconds.

    Returns:
        The decoded JSON payload, unvalidated.

    Raises:
        FetchError: on a non-2xx status or a transport failure.
        ParseError: if the body is not JSON.
    """
    body = {"query": build_grants_query(limit), "operationName": OPERATION_NAME}
    try:
        response = client.post(
            endpoint,
            json=body,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )
    except httpx.HTTPError as err:
        raise FetchError(f"API request failed: {err}") from err

    if not response.is_success:
        raise FetchError(
            f"API request failed with status {response.status_code}",
            status=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as err:
        raise ParseError("Grant endpoint returned a body that is not JSON") from err

    log(f"  Grants: {len(response.content):,} bytes received")
    return payload

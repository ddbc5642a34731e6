# tests/integration/conftest.py
from __future__ import annotations

import json
import threading
from collections.abc import Callable, Generator
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from flows_api.infrastructure.http_client import set_client
from flows_api.interfaces.api.dependencies import get_controller, set_controller

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

Handler = Callable[[httpx.Request], httpx.Response]


def _fixture(name: str) -> dict:
    return json.loads((FIXTURES_DIR / name).read_text(encoding="utf-8"))


def upstream(grants: httpx.Response, profiles: httpx.Response | None = None) -> Handler:
    """MockTransport handler: POST answers the grant query, GET the profile lookup."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return grants
        return profiles if profiles is not None else httpx.Response(200, json={})

    return handler


def _serve(handler: Handler, wait: bool = True) -> Generator[TestClient, None, None]:
    """Run the app against a mocked upstream, with a fresh controller."""
    set_client(httpx.Client(transport=httpx.MockTransport(handler)))
    set_controller(None)
    from flows_api.interfaces.api.main import app

    with TestClient(app) as c:
        if wait:
            get_controller().wait(timeout=5)
        yield c
    set_controller(None)


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Loaded state: sample grants plus profiles."""
    handler = upstream(
        httpx.Response(200, json=_fixture("sample_grants.json")),
        httpx.Response(200, json=_fixture("sample_profiles.json")),
    )
    yield from _serve(handler)


@pytest.fixture
def empty_client() -> Generator[TestClient, None, None]:
    handler = upstream(httpx.Response(200, json={"data": {"grantss": {"items": []}}}))
    yield from _serve(handler)


@pytest.fixture
def error_client() -> Generator[TestClient, None, None]:
    handler = upstream(httpx.Response(500, text="upstream down"))
    yield from _serve(handler)


@pytest.fixture
def loading_client() -> Generator[TestClient, None, None]:
    """The grant request blocks until teardown, so the view stays in loading."""
    release = threading.Event()

    def handler(request: httpx.Request) -> httpx.Response:
        release.wait(timeout=5)
        return httpx.Response(200, json={"data": {"grantss": {"items": []}}})

    serving = _serve(handler, wait=False)
    c = next(serving)
    try:
        yield c
    finally:
        release.set()
        next(serving, None)

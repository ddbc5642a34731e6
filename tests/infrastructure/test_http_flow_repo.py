# tests/infrastructure/test_http_flow_repo.py
#
# HttpFlowRepo against both endpoints served by one httpx.MockTransport.
from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import httpx
import pytest

from flows_api.application.services.flow_controller import FlowController, ViewStatus
from flows_api.domain.flow.value_objects import FlowRate
from flows_api.infrastructure.repositories.http_flow_repo import HttpFlowRepo
from flows_pipeline.config import PipelineConfig, SourceUrls
from flows_pipeline.sources.base import FetchError

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"
GRANTS_URL = "https://grants.test/graphql"
PROFILES_URL = "https://profiles.test/bulk"

CONFIG = PipelineConfig(source_urls=SourceUrls(grants=GRANTS_URL, profiles=PROFILES_URL))


def _fixture(name: str) -> dict:
    return json.loads((FIXTURES_DIR / name).read_text(encoding="utf-8"))


def _repo(grants_status: int = 200, profiles_status: int = 200) -> HttpFlowRepo:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "grants.test":
            if grants_status != 200:
                return httpx.Response(grants_status)
            return httpx.Response(200, json=_fixture("sample_grants.json"))
        if profiles_status != 200:
            return httpx.Response(profiles_status)
        return httpx.Response(200, json=_fixture("sample_profiles.json"))

    return HttpFlowRepo(httpx.Client(transport=httpx.MockTransport(handler)), CONFIG)


def test_list_grants_converts_rows_to_records() -> None:
    grants = _repo().list_grants()

    assert [g.id for g in grants] == ["flow-root", "grant-a", "grant-b", "grant-c", "grant-d"]
    root = grants[0]
    assert root.is_flow is True
    assert root.monthly_incoming_flow_rate == FlowRate(5000.5)
    assert root.flow_id is None
    assert grants[1].flow_id == "flow-root"
    assert grants[1].is_terminal
    assert grants[2].title == ""


def test_list_grants_propagates_fetch_error() -> None:
    with pytest.raises(FetchError, match="status 500"):
        _repo(grants_status=500).list_grants()


def test_profiles_for_keys_by_lowercase_address() -> None:
    repo = _repo()

    profiles = repo.profiles_for(repo.list_grants())

    assert list(profiles) == ["0xabc0000000000000000000000000000000000001"]
    profile = profiles["0xabc0000000000000000000000000000000000001"]
    assert profile.username == "builder"
    assert profile.display_name == "Ada Builder"
    assert profile.fid == 4242


def test_profiles_for_failure_is_empty_mapping() -> None:
    repo = _repo(profiles_status=429)

    assert repo.profiles_for(repo.list_grants()) == {}


def test_profiles_for_no_grants_is_empty_mapping() -> None:
    assert _repo().profiles_for([]) == {}


def test_out_of_range_fid_keeps_view_loaded() -> None:
    """A fid too large for Int64 drops the fid, not the profile or the view."""
    address = "0xabc0000000000000000000000000000000000001"

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "grants.test":
            return httpx.Response(200, json=_fixture("sample_grants.json"))
        return httpx.Response(200, json={address: [{"username": "builder", "display_name": "Ada", "fid": 2**64}]})

    repo = HttpFlowRepo(httpx.Client(transport=httpx.MockTransport(handler)), CONFIG)
    controller = FlowController(repo)

    with ThreadPoolExecutor(max_workers=1) as executor:
        controller.start(executor).result(timeout=5)

    snapshot = controller.snapshot
    assert snapshot.status is ViewStatus.LOADED
    assert snapshot.profiles[address].fid is None
    recipient = next(n for n in snapshot.graph.nodes if n.username == "builder")
    assert recipient.name == "Ada (builder)"
    assert recipient.fid is None

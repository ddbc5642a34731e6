# tests/application/test_flow_controller.py
#
# Tests for the view controller state machine.
# The repository is a hand-written fake: no HTTP.
from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

import pytest

from flows_api.application.services.flow_controller import FlowController, ViewSnapshot, ViewStatus
from flows_api.application.services.graph_service import GraphService
from flows_api.domain.flow.entities import GrantRecord, RecipientProfile
from flows_api.domain.flow.value_objects import FUNDING_SOURCE_ID, FlowRate
from flows_pipeline.sources.base import FetchError, ParseError

GRANTS = [
    GrantRecord(
        id="g1",
        title="Grant 1",
        monthly_incoming_flow_rate=FlowRate(100.0),
        monthly_outgoing_flow_rate=FlowRate(0.0),
        recipient="0xAbc",
    )
]
PROFILES = {"0xabc": RecipientProfile(username="alice", display_name="Alice")}


class FakeRepo:
    def __init__(
        self,
        grants: Sequence[GrantRecord] = (),
        profiles: dict[str, RecipientProfile] | None = None,
        error: Exception | None = None,
    ) -> None:
        self._grants = list(grants)
        self._profiles = profiles or {}
        self._error = error
        self.grant_calls = 0
        self.profile_calls: list[list[GrantRecord]] = []

    def list_grants(self) -> list[GrantRecord]:
        self.grant_calls += 1
        if self._error is not None:
            raise self._error
        return list(self._grants)

    def profiles_for(self, grants: Sequence[GrantRecord]) -> dict[str, RecipientProfile]:
        self.profile_calls.append(list(grants))
        return dict(self._profiles)


class RecordingController(FlowController):
    """Keeps every published snapshot so transitions can be asserted."""

    def __init__(self, repo) -> None:
        super().__init__(repo)
        self.published: list[ViewSnapshot] = []

    def _publish(self, snapshot: ViewSnapshot) -> None:
        self.published.append(snapshot)
        super()._publish(snapshot)


def test_initial_state_is_loading() -> None:
    controller = FlowController(FakeRepo(GRANTS))

    assert controller.snapshot.status is ViewStatus.LOADING
    assert controller.snapshot.graph.is_empty


def test_load_success_publishes_loaded_then_relabels() -> None:
    controller = RecordingController(FakeRepo(GRANTS, PROFILES))

    final = controller.load()

    assert [s.status for s in controller.published] == [ViewStatus.LOADED, ViewStatus.LOADED]
    first, second = controller.published
    assert first.profiles == {}
    recipient = next(n for n in first.graph.nodes if n.id == "recipient_0xAbc")
    assert recipient.name == "0xAbc"
    relabelled = next(n for n in second.graph.nodes if n.id == "recipient_0xAbc")
    assert relabelled.name == "Alice (alice)"
    assert final is controller.snapshot
    assert final.profiles == PROFILES


def test_profile_lookup_receives_grant_list() -> None:
    repo = FakeRepo(GRANTS, PROFILES)

    FlowController(repo).load()

    assert repo.profile_calls == [GRANTS]


def test_empty_profiles_keep_single_loaded_snapshot() -> None:
    """A failed or empty lookup leaves the diagram with raw addresses."""
    controller = RecordingController(FakeRepo(GRANTS, {}))

    controller.load()

    assert [s.status for s in controller.published] == [ViewStatus.LOADED]
    assert controller.snapshot.status is ViewStatus.LOADED
    assert FUNDING_SOURCE_ID in controller.snapshot.graph.node_ids


@pytest.mark.parametrize(
    "error",
    [
        FetchError("API request failed with status 500", status=500),
        ParseError("Grant response has no data object"),
    ],
)
def test_grant_failure_publishes_error(error) -> None:
    repo = FakeRepo(error=error)
    controller = FlowController(repo)

    snapshot = controller.load()

    assert snapshot.status is ViewStatus.ERROR
    assert snapshot.error == str(error)
    assert snapshot.graph.is_empty
    assert repo.profile_calls == []


def test_no_grants_is_loaded_and_empty() -> None:
    controller = FlowController(FakeRepo([]))

    snapshot = controller.load()

    assert snapshot.status is ViewStatus.LOADED
    assert snapshot.is_empty
    assert snapshot.graph.is_empty


def test_close_discards_late_results() -> None:
    controller = FlowController(FakeRepo(GRANTS, PROFILES))
    controller.close()

    controller.load()

    assert controller.snapshot.status is ViewStatus.LOADING


def test_start_runs_load_once() -> None:
    repo = FakeRepo(GRANTS)
    controller = FlowController(repo)

    with ThreadPoolExecutor(max_workers=1) as executor:
        first = controller.start(executor)
        second = controller.start(executor)
        first.result(timeout=5)

    assert first is second
    assert repo.grant_calls == 1
    assert controller.snapshot.status is ViewStatus.LOADED


def test_unexpected_failure_becomes_error_state() -> None:
    repo = FakeRepo(error=RuntimeError("kaboom"))
    controller = FlowController(repo)

    with ThreadPoolExecutor(max_workers=1) as executor:
        future = controller.start(executor)
        with pytest.raises(RuntimeError):
            future.result(timeout=5)

    assert controller.snapshot.status is ViewStatus.ERROR
    assert controller.snapshot.error == "kaboom"


class FailingProfilesRepo(FakeRepo):
    def profiles_for(self, grants: Sequence[GrantRecord]) -> dict[str, RecipientProfile]:
        super().profiles_for(grants)
        raise RuntimeError("could not append value")


def test_profile_lookup_crash_keeps_loaded() -> None:
    controller = RecordingController(FailingProfilesRepo(GRANTS))

    snapshot = controller.load()

    assert [s.status for s in controller.published] == [ViewStatus.LOADED]
    assert snapshot.status is ViewStatus.LOADED
    assert snapshot.error is None
    recipient = next(n for n in snapshot.graph.nodes if n.id == "recipient_0xAbc")
    assert recipient.name == "0xAbc"


def test_profile_lookup_crash_in_background_keeps_loaded() -> None:
    repo = FailingProfilesRepo(GRANTS)
    controller = FlowController(repo)

    with ThreadPoolExecutor(max_workers=1) as executor:
        future = controller.start(executor)
        result = future.result(timeout=5)

    assert result.status is ViewStatus.LOADED
    assert controller.snapshot.status is ViewStatus.LOADED
    assert controller.snapshot.profiles == {}
    assert not controller.snapshot.graph.is_empty
    assert len(repo.profile_calls) == 1


# --- GraphService ---


def test_graph_service_loading_state() -> None:
    service = GraphService(FlowController(FakeRepo(GRANTS)))

    state = service.current_state()

    assert state.status == "loading"
    assert state.message == "Loading grant data..."
    assert service.current_graph() is None


def test_graph_service_error_state() -> None:
    controller = FlowController(FakeRepo(error=FetchError("API request failed with status 502", status=502)))
    controller.load()
    service = GraphService(controller)

    state = service.current_state()

    assert state.status == "error"
    assert state.message == "API request failed with status 502"
    assert service.current_graph() is None


def test_graph_service_empty_state() -> None:
    controller = FlowController(FakeRepo([]))
    controller.load()

    state = GraphService(controller).current_state()

    assert state.message == "No grant data available."
    assert state.grant_count == 0


def test_graph_service_loaded_graph_dto() -> None:
    controller = FlowController(FakeRepo(GRANTS, PROFILES))
    controller.load()
    service = GraphService(controller)

    state = service.current_state()
    graph = service.current_graph()

    assert state.status == "loaded"
    assert state.message is None
    assert state.grant_count == 1
    assert state.profile_count == 1
    assert graph is not None
    assert [n.id for n in graph.nodes] == [FUNDING_SOURCE_ID, "g1", "recipient_0xAbc"]
    assert [n.kind for n in graph.nodes] == ["funding_source", "grant", "recipient"]
    assert graph.total_value == 200.0
    recipient = next(n for n in graph.nodes if n.id == "recipient_0xAbc")
    assert recipient.username == "alice"
    assert recipient.fid is None

# flows_api/application/services/flow_controller.py
#
# Top-level controller: fetch grants → fetch profiles → build graph.
#
# Design decisions:
#   - The view state is one immutable ViewSnapshot, replaced wholesale on every
#     change. Request threads only read the current snapshot, so the only lock
#     needed guards the reference swap.
#   - States: LOADING → ERROR | LOADED. LOADED is published as soon as the
#     grant list arrives, with an empty profile mapping; a successful profile
#     lookup publishes a second LOADED snapshot with the graph rebuilt. A late
#     profile answer therefore just relabels recipients.
#   - Only grant failures lead to ERROR. Profile failures are absorbed by
#     the repository; anything else profiles_for raises is logged in load()
#     and the LOADED snapshot stays.
#   - No retry and no cancellation. close() marks the controller as torn down;
#     results that arrive afterwards are discarded.
#   - The graph is rebuilt from scratch for every snapshot; FlowGraphBuilder is
#     pure so there is nothing to invalidate.
from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from concurrent.futures import Executor, Future
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass, field
from enum import Enum

from flows_api.domain.flow.entities import FlowGraph, GrantRecord, RecipientProfile
from flows_api.domain.flow.repository import FlowRepository
from flows_api.domain.flow.services import FlowGraphBuilder
from flows_api.domain.flow.value_objects import LinkTemplates
from flows_pipeline.log import log
from flows_pipeline.sources.base import SourceError


class ViewStatus(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    LOADED = "loaded"


@dataclass(frozen=True)
class ViewSnapshot:
    status: ViewStatus
    grants: tuple[GrantRecord, ...] = ()
    profiles: Mapping[str, RecipientProfile] = field(default_factory=dict)
    graph: FlowGraph = field(default_factory=FlowGraph)
    error: str | None = None

    @property
    def is_empty(self) -> bool:
        """Loaded, but the endpoint returned no grants."""
        return self.status is ViewStatus.LOADED and not self.grants


class FlowController:
    def __init__(self, repo: FlowRepository, links: LinkTemplates | None = None) -> None:
        self._repo = repo
        self._links = links or LinkTemplates()
        self._lock = threading.Lock()
        self._snapshot = ViewSnapshot(status=ViewStatus.LOADING)
        self._closed = False
        self._future: Future[ViewSnapshot] | None = None

    @property
    def snapshot(self) -> ViewSnapshot:
        with self._lock:
            return self._snapshot

    def load(self) -> ViewSnapshot:
        """Run the full fetch sequence once and return the final snapshot."""
        try:
            grants = self._repo.list_grants()
        except SourceError as err:
            log(f"Grant load failed: {err}")
            self._publish(ViewSnapshot(status=ViewStatus.ERROR, error=str(err)))
            return self.snapshot

        self._publish(self._loaded(grants, {}))

        try:
            profiles = self._repo.profiles_for(grants)
        except Exception as err:  # noqa: BLE001
            # LOADED stays; recipients keep their raw addresses.
            log(f"Profile lookup failed, keeping raw addresses: {err!r}")
            return self.snapshot
        if profiles:
            self._publish(self._loaded(grants, profiles))
        return self.snapshot

    def start(self, executor: Executor) -> Future[ViewSnapshot]:
        """Submit load() once; later calls return the same future."""
        with self._lock:
            if self._future is not None:
                return self._future
            future = executor.submit(self.load)
            self._future = future
        # The callback may run synchronously, so it is attached outside the lock.
        future.add_done_callback(self._on_done)
        return future

    def wait(self, timeout: float | None = None) -> ViewSnapshot:
        """Block until the started load has finished, then return the snapshot."""
        with self._lock:
            future = self._future
        if future is not None:
            wait_futures([future], timeout=timeout)
        return self.snapshot

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def _loaded(self, grants: Sequence[GrantRecord], profiles: Mapping[str, RecipientProfile]) -> ViewSnapshot:
        return ViewSnapshot(
            status=ViewStatus.LOADED,
            grants=tuple(grants),
            profiles=dict(profiles),
            graph=FlowGraphBuilder.build(grants, profiles, self._links),
        )

    def _publish(self, snapshot: ViewSnapshot) -> None:
        with self._lock:
            if self._closed:
                log(f"View closed, discarding {snapshot.status.value} result")
                return
            self._snapshot = snapshot
        log(
            f"View state: {snapshot.status.value} "
            f"({len(snapshot.graph.nodes)} nodes, {len(snapshot.graph.links)} links)"
        )

    def _on_done(self, future: Future[ViewSnapshot]) -> None:
        err = future.exception()
        if err is None:
            return
        log(f"Unexpected load failure: {err!r}")
        if self.snapshot.status is ViewStatus.LOADING:
            self._publish(ViewSnapshot(status=ViewStatus.ERROR, error=str(err) or type(err).__name__))

from __future__ import annotations

from flows_api.domain.flow.entities import FlowGraph

from ..dtos.graph_dto import GraphDTO, LinkDTO, NodeDTO, ViewStateDTO
from .flow_controller import FlowController, ViewStatus


class GraphService:
    def __init__(self, controller: FlowController) -> None:
        self._controller = controller

    def current_state(self) -> ViewStateDTO:
        snapshot = self._controller.snapshot
        message = None
        if snapshot.status is ViewStatus.ERROR:
            message = snapshot.error
        elif snapshot.status is ViewStatus.LOADING:
            message = "Loading grant data..."
        elif snapshot.is_empty:
            message = "No grant data available."
        return ViewStateDTO(
            status=snapshot.status.value,
            message=message,
            grant_count=len(snapshot.grants),
            profile_count=len(snapshot.profiles),
        )

    def current_graph(self) -> GraphDTO | None:
        """Current graph, or None while loading or after a failed load."""
        snapshot = self._controller.snapshot
        if snapshot.status is not ViewStatus.LOADED:
            return None
        return to_graph_dto(snapshot.graph)


def to_graph_dto(graph: FlowGraph) -> GraphDTO:
    return GraphDTO(
        nodes=[
            NodeDTO(
                id=n.id,
                name=n.name,
                kind=n.kind.value,
                title=n.title,
                url=n.url,
                is_flow=n.is_flow,
                username=n.username,
                fid=n.fid,
                pfp_url=n.pfp_url,
            )
            for n in graph.nodes
        ],
        links=[LinkDTO(source=link.source, target=link.target, value=link.value) for link in graph.links],
        total_value=graph.total_value,
    )

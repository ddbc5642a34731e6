# flows_api/domain/flow/entities.py
from __future__ import annotations

from dataclasses import dataclass, field

from .value_objects import FlowRate, NodeKind


@dataclass(frozen=True)
class GrantRecord:
    """Grant as published by the indexer. flow_id is the upstream grant that
    funds this one; is_flow marks grants that are themselves sub-flows."""

    id: str
    title: str = ""
    monthly_incoming_flow_rate: FlowRate = field(default_factory=FlowRate)
    monthly_outgoing_flow_rate: FlowRate = field(default_factory=FlowRate)
    recipient: str = ""
    flow_id: str | None = None
    is_flow: bool = False
    status: int | None = None

    @property
    def is_terminal(self) -> bool:
        """Pays its whole inflow to a wallet instead of to sub-grants."""
        return self.monthly_outgoing_flow_rate.is_zero and bool(self.recipient)


@dataclass(frozen=True)
class RecipientProfile:
    """Social profile of a recipient wallet."""

    username: str
    display_name: str
    fid: int | None = None
    pfp_url: str | None = None


@dataclass(frozen=True)
class GraphNode:
    id: str
    name: str
    kind: NodeKind
    title: str | None = None
    url: str | None = None
    is_flow: bool = False
    username: str | None = None
    fid: int | None = None
    pfp_url: str | None = None

    @property
    def tooltip(self) -> str:
        return self.title or self.name


@dataclass(frozen=True)
class GraphLink:
    source: str
    target: str
    value: float


@dataclass(frozen=True)
class FlowGraph:
    """Immutable node/link set ready for Sankey layout."""

    nodes: tuple[GraphNode, ...] = ()
    links: tuple[GraphLink, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    @property
    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}

    @property
    def total_value(self) -> float:
        return sum(link.value for link in self.links)

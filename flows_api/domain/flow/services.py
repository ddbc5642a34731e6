# flows_api/domain/flow/services.py
#
# Pure domain service turning grants + recipient profiles into a Sankey graph.
#
# Design decisions:
#   - FlowGraphBuilder contains only pure, stateless logic. No IO, no logging,
#     no HTTP. The repository fetches grants and profiles; the controller calls
#     build() again whenever either input changes. Nothing is mutated in place.
#   - Nodes are collected in an insertion-ordered dict so the output order
#     follows the input grant order (root first, then grants, then recipients).
#     The builder never sorts.
#   - Every grant gets a node; the funding link of a grant goes to its upstream
#     grant (flow_id) only when that id already names a node at construction
#     time, otherwise to the synthetic Funding Source. The check happens before
#     pruning: an upstream grant that is later pruned as disconnected is not
#     re-routed. Pruning cannot actually remove it, because the link itself
#     makes it connected.
#   - A terminal grant forwards its full inflow to its recipient: same value
#     as its inbound link, no fee modelling.
#   - Recipient nodes are keyed by lowercase address; the node id keeps the
#     spelling of the first grant that names the address.
#   - Duplicate grant ids keep the first record. A grant using the reserved
#     Funding Source id is ignored.
#
# Invariants:
#   - Node ids are unique.
#   - Every link endpoint is a node of the returned graph.
#   - The Funding Source node is present iff some link starts at it.
#   - prune_disconnected is idempotent.
from __future__ import annotations

from collections.abc import Iterable, Mapping

from .entities import FlowGraph, GrantRecord, GraphLink, GraphNode, RecipientProfile
from .value_objects import (
    FUNDING_SOURCE_ID,
    FUNDING_SOURCE_NAME,
    LinkTemplates,
    NodeKind,
    recipient_node_id,
)


class FlowGraphBuilder:
    """Pure domain service for flow graph construction.

    All methods are static because the service is stateless. Callers may
    instantiate it for namespacing or call methods directly on the class.
    """

    @staticmethod
    def build(
        grants: Iterable[GrantRecord],
        profiles: Mapping[str, RecipientProfile] | None = None,
        links: LinkTemplates | None = None,
    ) -> FlowGraph:
        """Build the Sankey graph for a grant list.

        Args:
            grants:   Grant records in display order.
            profiles: Recipient profiles keyed by lowercase address. May be
                      empty or partial; missing entries fall back to the raw
                      address as label.
            links:    URL templates for click-through links.

        Returns:
            FlowGraph with disconnected nodes removed.
        """
        profiles = profiles or {}
        links = links or LinkTemplates()
        unique_grants = _unique_grants(grants)

        nodes: dict[str, GraphNode] = {
            FUNDING_SOURCE_ID: GraphNode(
                id=FUNDING_SOURCE_ID,
                name=FUNDING_SOURCE_NAME,
                kind=NodeKind.FUNDING_SOURCE,
            )
        }

        for grant in unique_grants:
            nodes[grant.id] = _grant_node(grant, links)

        # lowercase address -> recipient node id (first spelling seen)
        recipients: dict[str, str] = {}
        for grant in unique_grants:
            if not grant.is_terminal:
                continue
            address = grant.recipient.lower()
            if address in recipients:
                continue
            node_id = recipient_node_id(grant.recipient)
            if node_id in nodes:
                recipients[address] = node_id
                continue
            nodes[node_id] = _recipient_node(grant.recipient, profiles.get(address), links)
            recipients[address] = node_id

        graph_links: list[GraphLink] = []
        for grant in unique_grants:
            incoming = grant.monthly_incoming_flow_rate
            if not incoming.is_positive:
                continue
            source = grant.flow_id if grant.flow_id and grant.flow_id in nodes else FUNDING_SOURCE_ID
            graph_links.append(GraphLink(source=source, target=grant.id, value=incoming.value))

        for grant in unique_grants:
            if not grant.is_terminal:
                continue
            node_id = recipients.get(grant.recipient.lower())
            incoming = grant.monthly_incoming_flow_rate
            if incoming.is_positive and node_id in nodes:
                graph_links.append(GraphLink(source=grant.id, target=node_id, value=incoming.value))

        if not any(link.source == FUNDING_SOURCE_ID for link in graph_links):
            del nodes[FUNDING_SOURCE_ID]

        kept_nodes, kept_links = FlowGraphBuilder.prune_disconnected(list(nodes.values()), graph_links)
        return FlowGraph(nodes=tuple(kept_nodes), links=tuple(kept_links))

    @staticmethod
    def prune_disconnected(
        nodes: list[GraphNode],
        links: list[GraphLink],
    ) -> tuple[list[GraphNode], list[GraphLink]]:
        """Drop nodes without an incident link, then links to dropped nodes.

        The second filter only matters for links whose endpoints were never
        nodes in the first place; for links built by build() it is a no-op.
        """
        touched = {link.source for link in links} | {link.target for link in links}
        kept_nodes = [node for node in nodes if node.id in touched]
        kept_ids = {node.id for node in kept_nodes}
        kept_links = [link for link in links if link.source in kept_ids and link.target in kept_ids]
        return kept_nodes, kept_links


def _unique_grants(grants: Iterable[GrantRecord]) -> list[GrantRecord]:
    seen: set[str] = set()
    unique: list[GrantRecord] = []
    for grant in grants:
        if grant.id == FUNDING_SOURCE_ID or grant.id in seen:
            continue
        seen.add(grant.id)
        unique.append(grant)
    return unique


def _grant_node(grant: GrantRecord, links: LinkTemplates) -> GraphNode:
    url = links.flow_url(grant.id) if grant.is_flow else links.item_url(grant.id)
    return GraphNode(
        id=grant.id,
        name=grant.title or grant.id,
        kind=NodeKind.GRANT,
        title=grant.title or None,
        url=url,
        is_flow=grant.is_flow,
    )


def _recipient_node(address: str, profile: RecipientProfile | None, links: LinkTemplates) -> GraphNode:
    if profile is None:
        return GraphNode(
            id=recipient_node_id(address),
            name=address,
            kind=NodeKind.RECIPIENT,
            title=f"Recipient: {address}",
        )
    return GraphNode(
        id=recipient_node_id(address),
        name=f"{profile.display_name} ({profile.username})",
        kind=NodeKind.RECIPIENT,
        title=f"Recipient: {profile.display_name}",
        url=links.profile_url(profile.username),
        username=profile.username,
        fid=profile.fid,
        pfp_url=profile.pfp_url,
    )

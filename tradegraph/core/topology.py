"""
Topology Engine
===============

NetworkX view of a trade Graph, for export and structural diagnostics.

SCOPE FENCE:
============
ALLOWED:
- Export to a networkx DiGraph (for downstream tooling)
- One-hop ego-network extraction
- Structural counts, density and weak components

FORBIDDEN:
- Path finding, centrality, community detection
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, FrozenSet

import networkx as nx

from ..contracts.graph import Graph


@dataclass(frozen=True)
class GraphMetrics:
    """Immutable structural metrics for a graph or subgraph."""
    node_count: int
    link_count: int
    density: float
    isolated_count: int
    component_count: int
    nodes_by_type: Dict[str, int]

    def to_dict(self) -> dict:
        return {
            'node_count': self.node_count,
            'link_count': self.link_count,
            'density': self.density,
            'isolated_count': self.isolated_count,
            'component_count': self.component_count,
            'nodes_by_type': dict(self.nodes_by_type),
        }


def to_networkx(graph: Graph) -> nx.DiGraph:
    """Export as a DiGraph carrying node and link statistics as attributes."""
    digraph = nx.DiGraph()
    for node_id, node in graph.nodes.items():
        digraph.add_node(
            node_id,
            name=node.display_name,
            type=node.type.value,
            transaction_count=node.transaction_count,
            total_value=node.total_value,
        )
    for link in graph.links.values():
        digraph.add_edge(
            link.source,
            link.target,
            id=link.id,
            transaction_count=link.transaction_count,
            total_value=link.total_value,
        )
    return digraph


class TopologyEngine:
    """
    Wraps NetworkX for the few structural operations this project needs.

    Rebuilt per graph; holds no state beyond the current DiGraph.
    """

    def __init__(self, graph: Graph):
        self._graph = graph
        self._digraph = to_networkx(graph)

    @property
    def digraph(self) -> nx.DiGraph:
        return self._digraph

    def ego_network_ids(self, node_id: str) -> FrozenSet[str]:
        """Node plus direct neighbors in either direction."""
        if node_id not in self._digraph:
            return frozenset()
        ego = nx.ego_graph(self._digraph, node_id, radius=1, undirected=True)
        return frozenset(ego.nodes)

    def compute_metrics(self) -> GraphMetrics:
        nodes_by_type: Dict[str, int] = {}
        for node in self._graph.nodes.values():
            nodes_by_type[node.type.value] = nodes_by_type.get(node.type.value, 0) + 1

        if self._digraph.number_of_nodes() == 0:
            return GraphMetrics(0, 0, 0.0, 0, 0, nodes_by_type)

        return GraphMetrics(
            node_count=self._digraph.number_of_nodes(),
            link_count=self._digraph.number_of_edges(),
            density=nx.density(self._digraph),
            isolated_count=nx.number_of_isolates(self._digraph),
            component_count=nx.number_weakly_connected_components(self._digraph),
            nodes_by_type=nodes_by_type,
        )

"""
Filter Engine
=============

Projects the full Graph through a FilterState into the visible subgraph.

STEP ORDER (each step consumes the previous step's result):
============================================================
1. Threshold: drop links below the minimum transaction count, then drop
   nodes touched by no surviving link
2. Search: case-insensitive substring over display name and original names;
   a unique match with no focus set becomes the focus
3. Focus: focus node plus its surviving neighbors; unioned with search
   matches when a search is active
4. Links: every threshold-surviving link with both endpoints visible

The engine is a pure function of (graph, filter state). It never mutates
the FilterState; callers adopt VisibleGraph.focus_entity_id themselves.
"""

from __future__ import annotations
from typing import Dict, FrozenSet, List, Optional, Set

from ..contracts.events import AuditEventType, AuditLogEntry
from ..contracts.graph import FilterState, Graph, Link, Node, VisibleGraph


def threshold_links(graph: Graph, threshold: int) -> Dict[str, Link]:
    return {
        link_id: link
        for link_id, link in graph.links.items()
        if link.transaction_count >= threshold
    }


def touched_node_ids(links: Dict[str, Link]) -> Set[str]:
    used: Set[str] = set()
    for link in links.values():
        used.add(link.source)
        used.add(link.target)
    return used


def node_matches(node: Node, term_lower: str) -> bool:
    """Case-insensitive substring match on display name or any original name."""
    if term_lower in node.display_name.lower():
        return True
    return any(term_lower in str(name).lower() for name in node.original_names)


def search_nodes(nodes: Dict[str, Node], term: str) -> FrozenSet[str]:
    if not term.strip():
        return frozenset()
    term_lower = term.lower()
    return frozenset(
        node_id for node_id, node in nodes.items() if node_matches(node, term_lower)
    )


class FilterEngine:
    """Derives the visible subgraph; keeps only an audit log."""

    def __init__(self):
        self._audit_log: List[AuditLogEntry] = []

    def visible_subgraph(self, full: Graph, filter_state: Optional[FilterState] = None) -> VisibleGraph:
        filter_state = filter_state or FilterState()

        # 1. Threshold
        surviving_links = threshold_links(full, filter_state.min_transaction_threshold)
        used_ids = touched_node_ids(surviving_links)
        surviving_nodes = {node_id: full.nodes[node_id] for node_id in used_ids}

        # 2. Search
        searching = bool(filter_state.search_term.strip())
        matches = search_nodes(surviving_nodes, filter_state.search_term) if searching else frozenset()

        focus_id = filter_state.focus_entity_id
        auto_focused = False
        if searching and len(matches) == 1 and not focus_id:
            focus_id = next(iter(matches))
            auto_focused = True

        # 3. Focus expansion
        if focus_id is not None and focus_id not in surviving_nodes:
            focus_id = None

        if focus_id is not None:
            focus_node = surviving_nodes[focus_id]
            ego_ids = {focus_id} | (set(focus_node.neighbor_ids) & surviving_nodes.keys())
            visible_ids = (set(matches) | ego_ids) if searching else ego_ids
        elif searching:
            visible_ids = set(matches)
        else:
            visible_ids = set(surviving_nodes)

        # 4. Link re-derivation
        visible_links = {
            link_id: link
            for link_id, link in surviving_links.items()
            if link.source in visible_ids and link.target in visible_ids
        }
        graph = Graph(
            nodes={node_id: surviving_nodes[node_id] for node_id in visible_ids},
            links=visible_links,
        )

        self._audit_log.append(AuditLogEntry.create(
            event_type=AuditEventType.FILTER,
            layer="filter",
            action="subgraph_projected",
            entity_id=focus_id,
            metadata=(
                ("threshold", filter_state.min_transaction_threshold),
                ("search_active", searching),
                ("search_matches", len(matches)),
                ("auto_focused", auto_focused),
                ("visible_nodes", graph.node_count),
                ("visible_links", graph.link_count),
            )
        ))

        return VisibleGraph(
            graph=graph,
            focus_entity_id=focus_id,
            search_match_ids=matches,
            auto_focused=auto_focused,
        )

    def get_audit_log(self) -> List[AuditLogEntry]:
        """Return copy of audit log entries."""
        return list(self._audit_log)

    def drain_audit_log(self) -> List[AuditLogEntry]:
        """Return and clear pending audit entries."""
        entries, self._audit_log = self._audit_log, []
        return entries


def visible_subgraph(full: Graph, filter_state: Optional[FilterState] = None) -> VisibleGraph:
    return FilterEngine().visible_subgraph(full, filter_state)

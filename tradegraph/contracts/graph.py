"""
Graph Contracts
===============

Immutable node/link/graph types plus the two configuration objects that
drive construction (DisplayConfig) and projection (FilterState).

INVARIANTS:
===========
- Node identity is the deterministic id "<type>-<normalized name>"
- Link id is "<source id>-><target id>"; a->b and b->a are distinct links
- Every link's source and target exist in the same Graph (closure)
- Iteration order over nodes/links is unspecified
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional

from .base import (
    DisplayMode, EntityType, HsCodeLevel, ProductDisplayMode, parse_enum
)


LINK_SEPARATOR = "->"


def make_link_id(source_id: str, target_id: str) -> str:
    return f"{source_id}{LINK_SEPARATOR}{target_id}"


@dataclass(frozen=True)
class Node:
    """Aggregated entity node."""
    id: str
    display_name: str
    type: EntityType
    original_names: FrozenSet[str] = field(default_factory=frozenset)
    transaction_count: int = 0
    total_value: float = 0.0
    neighbor_ids: FrozenSet[str] = field(default_factory=frozenset)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.display_name,
            'type': self.type.value,
            'original_names': sorted(self.original_names),
            'transaction_count': self.transaction_count,
            'total_value': self.total_value,
            'neighbor_ids': sorted(self.neighbor_ids),
        }


@dataclass(frozen=True)
class Link:
    """Aggregated directed edge."""
    id: str
    source: str
    target: str
    transaction_count: int = 0
    total_value: float = 0.0

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'source': self.source,
            'target': self.target,
            'transaction_count': self.transaction_count,
            'total_value': self.total_value,
        }


@dataclass(frozen=True, eq=False)
class Graph:
    """
    Immutable graph snapshot.

    Mappings are read-only views; the builder that produced them holds
    no reference to them after freezing.
    """
    nodes: Mapping[str, Node] = field(default_factory=lambda: MappingProxyType({}))
    links: Mapping[str, Link] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        if not isinstance(self.nodes, MappingProxyType):
            object.__setattr__(self, 'nodes', MappingProxyType(dict(self.nodes)))
        if not isinstance(self.links, MappingProxyType):
            object.__setattr__(self, 'links', MappingProxyType(dict(self.links)))
        for link in self.links.values():
            if link.source not in self.nodes or link.target not in self.nodes:
                raise ValueError(f"Link {link.id} references a node outside the graph")

    @staticmethod
    def empty() -> Graph:
        return Graph()

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def link_count(self) -> int:
        return len(self.links)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def node(self, node_id: str) -> Optional[Node]:
        return self.nodes.get(node_id)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return dict(self.nodes) == dict(other.nodes) and dict(self.links) == dict(other.links)

    __hash__ = object.__hash__

    def to_dict(self) -> dict:
        return {
            'nodes': [self.nodes[k].to_dict() for k in sorted(self.nodes)],
            'links': [self.links[k].to_dict() for k in sorted(self.links)],
        }


# =============================================================================
# CONFIGURATION / STATE
# =============================================================================

@dataclass(frozen=True)
class DisplayConfig:
    """
    Immutable per-build configuration.

    Changing any field changes node identity or topology, so the full
    graph must be rebuilt.
    """
    display_mode: DisplayMode = DisplayMode.FULL
    product_display_mode: ProductDisplayMode = ProductDisplayMode.HS_CODE
    hs_code_level: HsCodeLevel = HsCodeLevel.CATEGORY

    @staticmethod
    def from_strings(
        display_mode: str = "full",
        product_display_mode: str = "hsCode",
        hs_code_level: str = "category"
    ) -> DisplayConfig:
        return DisplayConfig(
            display_mode=parse_enum(DisplayMode, display_mode, "display mode"),
            product_display_mode=parse_enum(
                ProductDisplayMode, product_display_mode, "product display mode"
            ),
            hs_code_level=parse_enum(HsCodeLevel, hs_code_level, "HS code level"),
        )


@dataclass(frozen=True)
class FilterState:
    """User-driven filter/selection state, orthogonal to DisplayConfig."""
    min_transaction_threshold: int = 1
    search_term: str = ""
    focus_entity_id: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.min_transaction_threshold, bool) or \
                not isinstance(self.min_transaction_threshold, int):
            raise ValueError("min_transaction_threshold must be an integer")
        if self.min_transaction_threshold < 1:
            raise ValueError("min_transaction_threshold must be >= 1")
        if self.search_term is None:
            object.__setattr__(self, 'search_term', "")

    def with_threshold(self, threshold: int) -> FilterState:
        return replace(self, min_transaction_threshold=threshold)

    def with_search(self, term: str) -> FilterState:
        return replace(self, search_term=term or "")

    def with_focus(self, node_id: Optional[str]) -> FilterState:
        return replace(self, focus_entity_id=node_id)

    def cleared(self) -> FilterState:
        """Drop search and focus, keep the threshold."""
        return FilterState(min_transaction_threshold=self.min_transaction_threshold)


@dataclass(frozen=True)
class VisibleGraph:
    """
    Result of projecting the full graph through a FilterState.

    focus_entity_id is the focus actually applied: it may come from
    auto-focus on a unique search match, and is None when the requested
    focus did not survive the threshold.
    """
    graph: Graph
    focus_entity_id: Optional[str] = None
    search_match_ids: FrozenSet[str] = field(default_factory=frozenset)
    auto_focused: bool = False

    @property
    def is_empty(self) -> bool:
        return self.graph.is_empty

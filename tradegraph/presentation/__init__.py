"""
Presentation Contracts

Responsibility:
ViewModels for the selection display and style hints for the renderer.
Pure data derived from nodes/links; no painting, no gesture handling.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple
import math

from ..contracts.base import EntityType
from ..contracts.graph import Link, Node


MAX_SAMPLE_NAMES = 5
SHORT_LABEL_MAX = 15

NODE_COLORS = {
    EntityType.COUNTRY: "#F97316",
    EntityType.SUPPLIER: "#22C55E",
    EntityType.PRODUCT: "#A855F7",
    EntityType.IMPORTER: "#6366F1",
}
FOCUS_COLOR = "#f03b20"
LINK_COLOR = "#999"


def format_value(value: float) -> str:
    """Thousands separators, at most two decimals, no trailing zeros."""
    text = f"{value:,.2f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


def short_label(name: str, max_length: int = SHORT_LABEL_MAX) -> str:
    if len(name) > max_length:
        return name[:max_length - 3] + "..."
    return name


@dataclass(frozen=True)
class NodeSummary:
    """ViewModel for the selection panel and node tooltip."""
    node_id: str
    name: str
    entity_type: str
    transaction_count: int
    total_value: float
    sample_names: Tuple[str, ...]
    variant_count: int
    overflow_count: int

    @staticmethod
    def from_node(node: Node) -> NodeSummary:
        names = tuple(sorted(str(n) for n in node.original_names))
        return NodeSummary(
            node_id=node.id,
            name=node.display_name,
            entity_type=node.type.value,
            transaction_count=node.transaction_count,
            total_value=node.total_value,
            sample_names=names[:MAX_SAMPLE_NAMES],
            variant_count=len(names),
            overflow_count=max(0, len(names) - MAX_SAMPLE_NAMES),
        )

    def format_tooltip(self) -> str:
        lines = [
            self.name,
            f"Type: {self.entity_type}",
            f"Transactions: {self.transaction_count}",
            f"Value: ${format_value(self.total_value)}",
        ]
        # Variations only when the node merged more than one spelling
        if self.variant_count > 1:
            lines.append("")
            lines.append(f"Variations ({self.variant_count}):")
            lines.extend(f"- {name}" for name in self.sample_names)
            if self.overflow_count:
                lines.append(f"- and {self.overflow_count} more...")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            'id': self.node_id,
            'name': self.name,
            'type': self.entity_type,
            'transaction_count': self.transaction_count,
            'total_value': self.total_value,
            'sample_names': list(self.sample_names),
            'variant_count': self.variant_count,
            'overflow_count': self.overflow_count,
        }


@dataclass(frozen=True)
class NodeStyle:
    color: str
    radius: float
    label: str
    is_focused: bool
    is_focus_neighbor: bool
    emphasis: float  # opacity


@dataclass(frozen=True)
class LinkStyle:
    stroke_width: float
    touches_focus: bool
    color: str
    emphasis: float


def node_style(node: Node, focus_id: Optional[str] = None) -> NodeStyle:
    is_focused = focus_id is not None and node.id == focus_id
    is_neighbor = focus_id is not None and focus_id in node.neighbor_ids
    if focus_id is None or is_focused:
        emphasis = 1.0
    else:
        emphasis = 0.8 if is_neighbor else 0.3
    return NodeStyle(
        color=NODE_COLORS[node.type],
        radius=max(6.0, math.sqrt(node.transaction_count) * 0.6),
        label=short_label(node.display_name),
        is_focused=is_focused,
        is_focus_neighbor=is_neighbor,
        emphasis=emphasis,
    )


def link_style(link: Link, focus_id: Optional[str] = None) -> LinkStyle:
    touches = focus_id is not None and focus_id in (link.source, link.target)
    if focus_id is None:
        emphasis = 0.6
    else:
        emphasis = 1.0 if touches else 0.3
    count = max(link.transaction_count, 1)
    return LinkStyle(
        stroke_width=max(1.0, math.log(count) * 0.5),
        touches_focus=touches,
        color=FOCUS_COLOR if touches else LINK_COLOR,
        emphasis=emphasis,
    )


__all__ = [
    'NodeSummary', 'NodeStyle', 'LinkStyle', 'node_style', 'link_style',
    'format_value', 'short_label', 'NODE_COLORS', 'MAX_SAMPLE_NAMES',
]

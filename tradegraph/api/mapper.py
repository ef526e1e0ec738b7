"""
API Mapper
==========

Transforms a PipelineView into the JSON DTO consumed by the rendering
collaborator. This is the only place pipeline values become wire dicts.
"""
from typing import Any, Dict, Optional

from ..core.topology import GraphMetrics
from ..engine import PipelineView
from ..presentation import NodeSummary, link_style, node_style


def map_view_to_dto(view: PipelineView, metrics: Optional[GraphMetrics] = None) -> Dict[str, Any]:
    """
    Map a PipelineView to the graph DTO.

    Nodes and links are sorted by id so identical views serialize identically.
    """
    focus_id = view.focus_entity_id
    graph = view.graph
    hints = view.layout.nodes if view.layout else {}

    nodes = []
    for node_id in sorted(graph.nodes):
        node = graph.nodes[node_id]
        style = node_style(node, focus_id)
        hint = hints.get(node_id)
        nodes.append({
            "id": node.id,
            "name": node.display_name,
            "type": node.type.value,
            "transaction_count": node.transaction_count,
            "total_value": node.total_value,
            "original_names": sorted(node.original_names),
            "neighbor_ids": sorted(node.neighbor_ids),
            "tooltip": NodeSummary.from_node(node).format_tooltip(),
            "style": {
                "color": style.color,
                "radius": style.radius,
                "label": style.label,
                "is_focused": style.is_focused,
                "is_focus_neighbor": style.is_focus_neighbor,
                "opacity": style.emphasis,
            },
            "layout": hint.to_dict() if hint else None,
        })

    links = []
    for link_id in sorted(graph.links):
        link = graph.links[link_id]
        style = link_style(link, focus_id)
        links.append({
            **link.to_dict(),
            "style": {
                "stroke_width": style.stroke_width,
                "color": style.color,
                "touches_focus": style.touches_focus,
                "opacity": style.emphasis,
            },
        })

    return {
        "status": view.status.value,
        "display_config": {
            "display_mode": view.display_config.display_mode.value,
            "product_display_mode": view.display_config.product_display_mode.value,
            "hs_code_level": view.display_config.hs_code_level.value,
        },
        "filter_state": {
            "threshold": view.filter_state.min_transaction_threshold,
            "search": view.filter_state.search_term,
            "focus": view.filter_state.focus_entity_id,
        },
        "focus_entity_id": focus_id,
        "auto_focused": bool(view.visible and view.visible.auto_focused),
        "search_match_ids": sorted(view.visible.search_match_ids) if view.visible else [],
        "nodes": nodes,
        "links": links,
        "forces": view.layout.forces.to_dict() if view.layout else None,
        "canvas": {"width": view.layout.width, "height": view.layout.height} if view.layout else None,
        "report": view.report.to_dict() if view.report else None,
        "metrics": metrics.to_dict() if metrics else None,
        "error": view.error.to_dict() if view.error else None,
    }

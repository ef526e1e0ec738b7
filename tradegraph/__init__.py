"""
Trade Network Graph Engine

Turns noisy trade-transaction rows into a deduplicated, aggregated
multi-type graph, projects visible subgraphs by threshold, search and
focus, and parameterizes them for a force-directed layout.
"""

from .contracts import (
    DisplayConfig, FilterState, Graph, Node, Link, VisibleGraph,
    DisplayMode, ProductDisplayMode, HsCodeLevel, EntityType,
)
from .core import GraphBuilder, FilterEngine, build_graph, visible_subgraph
from .layout import LayoutParameterizer
from .normalization import Normalizer, normalize_entity
from .engine import TradeGraphEngine, EngineConfig, PipelineStatus, PipelineView

__version__ = "0.1.0"

__all__ = [
    'DisplayConfig', 'FilterState', 'Graph', 'Node', 'Link', 'VisibleGraph',
    'DisplayMode', 'ProductDisplayMode', 'HsCodeLevel', 'EntityType',
    'GraphBuilder', 'FilterEngine', 'build_graph', 'visible_subgraph',
    'LayoutParameterizer', 'Normalizer', 'normalize_entity',
    'TradeGraphEngine', 'EngineConfig', 'PipelineStatus', 'PipelineView',
]

"""
Core Graph Layer

RESPONSIBILITY: Build the aggregated graph and project visible subgraphs
ALLOWED INPUTS: Parsed row records, DisplayConfig, FilterState
OUTPUTS: Graph, BuildReport, VisibleGraph

WHAT THIS LAYER MUST NOT DO:
============================
- Read files or talk to the network
- Compute layout or rendering parameters
- Raise on dirty row data
"""

from .builder import (
    GraphBuilder, BuildReport, BuildResult, build_graph,
    parse_monetary_value, hs_code_label, product_name_label, product_name_id, entity_id,
    FIELD_COUNTRY, FIELD_SUPPLIER, FIELD_IMPORTER, FIELD_HS_CODE,
    FIELD_PRODUCT_NAME, FIELD_VALUE,
)
from .filtering import FilterEngine, visible_subgraph, search_nodes
from .topology import TopologyEngine, GraphMetrics, to_networkx

__all__ = [
    'GraphBuilder', 'BuildReport', 'BuildResult', 'build_graph',
    'parse_monetary_value', 'hs_code_label', 'product_name_label',
    'product_name_id', 'entity_id',
    'FIELD_COUNTRY', 'FIELD_SUPPLIER', 'FIELD_IMPORTER', 'FIELD_HS_CODE',
    'FIELD_PRODUCT_NAME', 'FIELD_VALUE',
    'FilterEngine', 'visible_subgraph', 'search_nodes',
    'TopologyEngine', 'GraphMetrics', 'to_networkx',
]

"""
Contracts Layer

Immutable types shared by every layer. No behavior beyond validation
and serialization helpers.
"""

from .base import (
    ErrorCode, Error, Result, Timestamp,
    EntityType, DisplayMode, ProductDisplayMode, HsCodeLevel,
    EDGE_PATTERNS, parse_enum,
)
from .graph import (
    Node, Link, Graph, DisplayConfig, FilterState, VisibleGraph,
    make_link_id, LINK_SEPARATOR,
)
from .events import AuditEventType, AuditLogEntry, MetricPoint

__all__ = [
    'ErrorCode', 'Error', 'Result', 'Timestamp',
    'EntityType', 'DisplayMode', 'ProductDisplayMode', 'HsCodeLevel',
    'EDGE_PATTERNS', 'parse_enum',
    'Node', 'Link', 'Graph', 'DisplayConfig', 'FilterState', 'VisibleGraph',
    'make_link_id', 'LINK_SEPARATOR',
    'AuditEventType', 'AuditLogEntry', 'MetricPoint',
]

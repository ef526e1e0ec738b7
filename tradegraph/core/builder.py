"""
Graph Builder
=============

Consumes parsed row records plus a DisplayConfig and produces the full
aggregated Graph.

TWO PHASES:
===========
1. Accumulate: a private mutable scope owns every node/link accumulator
2. Freeze: accumulators become immutable Node/Link values in a Graph;
   nothing from phase 1 is reachable afterwards

ROBUSTNESS:
===========
No row-level error ever escapes build(). A row missing a required field is
skipped; an unparseable monetary value counts as 0. Both are counted in the
BuildReport, never raised.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple
import hashlib
import logging
import math
import re
import time

from ..contracts.base import (
    EDGE_PATTERNS, EntityType, Error, ErrorCode, HsCodeLevel, ProductDisplayMode
)
from ..contracts.events import AuditEventType, AuditLogEntry
from ..contracts.graph import DisplayConfig, Graph, Link, Node, make_link_id
from ..normalization import Normalizer, coerce_text


logger = logging.getLogger(__name__)


# Row field names (contract surface of the parsing collaborator)
FIELD_COUNTRY = "Foreign Country"
FIELD_SUPPLIER = "Supplier Name"
FIELD_IMPORTER = "Importer Name"
FIELD_HS_CODE = "HS Code "  # trailing space is part of the header
FIELD_PRODUCT_NAME = "Product Name"
FIELD_VALUE = "CIF Value (USD)"

PRODUCT_LABEL_MAX = 30
PRODUCT_LABEL_KEEP = 27
ELLIPSIS = "..."

_LEADING_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


# =============================================================================
# REPORT
# =============================================================================

@dataclass
class BuildReport:
    """
    Aggregate diagnostics for one build.

    Every row is either used or skipped; skipped rows are attributed to the
    first required field found missing.
    """
    rows_seen: int = 0
    rows_used: int = 0
    skipped_by_field: Dict[str, int] = field(default_factory=dict)
    values_unparseable: int = 0
    node_count: int = 0
    link_count: int = 0
    duration_ms: float = 0.0

    @property
    def rows_skipped(self) -> int:
        return sum(self.skipped_by_field.values())

    def record_skip(self, field_name: str) -> None:
        self.skipped_by_field[field_name] = self.skipped_by_field.get(field_name, 0) + 1

    def diagnostics(self) -> Tuple[Error, ...]:
        """Row-level anomalies as Error values, one per skipped field plus one for values."""
        errors = [
            Error.create(
                ErrorCode.ROW_SKIPPED,
                f"{count} row(s) skipped: missing {field_name!r}",
                field=field_name,
                count=count,
            )
            for field_name, count in sorted(self.skipped_by_field.items())
        ]
        if self.values_unparseable:
            errors.append(Error.create(
                ErrorCode.VALUE_UNPARSEABLE,
                f"{self.values_unparseable} monetary value(s) counted as 0",
                count=self.values_unparseable,
            ))
        return tuple(errors)

    def to_dict(self) -> dict:
        return {
            'rows_seen': self.rows_seen,
            'rows_used': self.rows_used,
            'rows_skipped': self.rows_skipped,
            'skipped_by_field': dict(self.skipped_by_field),
            'values_unparseable': self.values_unparseable,
            'node_count': self.node_count,
            'link_count': self.link_count,
            'duration_ms': round(self.duration_ms, 3),
        }


@dataclass(frozen=True)
class BuildResult:
    graph: Graph
    report: BuildReport
    config: DisplayConfig


# =============================================================================
# VALUE PARSING / PRODUCT LABELS
# =============================================================================

def parse_monetary_value(raw) -> Tuple[float, bool]:
    """
    Parse the monetary field like a lenient float parse.

    Returns (value, parsed). A leading numeric prefix is accepted
    ("1200 USD" -> 1200.0). Absent values return (0.0, True) so they are not
    counted as unparseable; anything else that yields no finite number
    returns (0.0, False).
    """
    if raw is None or raw == "":
        return 0.0, True
    if isinstance(raw, bool):
        return 0.0, False
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        match = _LEADING_FLOAT_RE.match(raw.strip())
        if not match:
            return 0.0, False
        value = float(match.group(0))
    else:
        return 0.0, False

    if math.isnan(value) or math.isinf(value):
        return 0.0, False
    return value, True


def hs_code_label(raw_code: str, level: HsCodeLevel) -> str:
    """Truncate an HS code to the configured granularity."""
    code = raw_code.strip()
    if level == HsCodeLevel.CATEGORY and len(code) >= 2:
        return f"HS {code[:2]}xx"
    if level == HsCodeLevel.SUBCATEGORY and len(code) >= 4:
        return f"HS {code[:4]}xx"
    return f"HS {code}"


def product_name_label(normalized_name: str) -> str:
    if len(normalized_name) > PRODUCT_LABEL_MAX:
        return normalized_name[:PRODUCT_LABEL_KEEP] + ELLIPSIS
    return normalized_name


def product_name_id(normalized_name: str) -> str:
    """Id from a content hash of the untruncated name, so shared prefixes never collide."""
    digest = hashlib.sha256(normalized_name.encode('utf-8')).hexdigest()[:16]
    return f"product-name-{digest}"


def entity_id(entity_type: EntityType, normalized_name: str) -> str:
    return f"{entity_type.value}-{normalized_name}"


# =============================================================================
# ACCUMULATORS (phase 1 only)
# =============================================================================

class _NodeAccumulator:
    __slots__ = ('id', 'display_name', 'type', 'original_names',
                 'transaction_count', 'total_value', 'neighbor_ids')

    def __init__(self, node_id: str, display_name: str, entity_type: EntityType, original: str):
        self.id = node_id
        self.display_name = display_name
        self.type = entity_type
        self.original_names: Set[str] = {original}
        self.transaction_count = 0
        self.total_value = 0.0
        self.neighbor_ids: Set[str] = set()

    def freeze(self) -> Node:
        return Node(
            id=self.id,
            display_name=self.display_name,
            type=self.type,
            original_names=frozenset(self.original_names),
            transaction_count=self.transaction_count,
            total_value=self.total_value,
            neighbor_ids=frozenset(self.neighbor_ids),
        )


class _LinkAccumulator:
    __slots__ = ('id', 'source', 'target', 'transaction_count', 'total_value')

    def __init__(self, source: str, target: str):
        self.id = make_link_id(source, target)
        self.source = source
        self.target = target
        self.transaction_count = 0
        self.total_value = 0.0

    def freeze(self) -> Link:
        return Link(
            id=self.id,
            source=self.source,
            target=self.target,
            transaction_count=self.transaction_count,
            total_value=self.total_value,
        )


class _GraphAccumulator:
    """Mutable build scope. Owns every accumulator until freeze()."""

    def __init__(self):
        self._nodes: Dict[str, _NodeAccumulator] = {}
        self._links: Dict[str, _LinkAccumulator] = {}

    def get_or_create_node(
        self,
        node_id: str,
        display_name: str,
        entity_type: EntityType,
        original: str
    ) -> _NodeAccumulator:
        node = self._nodes.get(node_id)
        if node is None:
            node = _NodeAccumulator(node_id, display_name, entity_type, original)
            self._nodes[node_id] = node
        else:
            node.original_names.add(original)
        return node

    def add_link(self, source: _NodeAccumulator, target: _NodeAccumulator, value: float) -> None:
        link_id = make_link_id(source.id, target.id)
        link = self._links.get(link_id)
        if link is None:
            link = _LinkAccumulator(source.id, target.id)
            self._links[link_id] = link
        link.transaction_count += 1
        link.total_value += value

        source.neighbor_ids.add(target.id)
        target.neighbor_ids.add(source.id)

    def freeze(self) -> Graph:
        graph = Graph(
            nodes={k: n.freeze() for k, n in self._nodes.items()},
            links={k: l.freeze() for k, l in self._links.items()},
        )
        self._nodes = {}
        self._links = {}
        return graph


# =============================================================================
# BUILDER
# =============================================================================

class GraphBuilder:
    """
    Builds the full Graph from row records.

    Deterministic for identical rows and config. Each build() call starts
    from an empty accumulator; the builder keeps only its audit log.
    """

    def __init__(self, normalizer: Optional[Normalizer] = None):
        self._normalizer = normalizer or Normalizer()
        self._audit_log: List[AuditLogEntry] = []

    def build(self, rows: Iterable[Mapping], config: Optional[DisplayConfig] = None) -> BuildResult:
        config = config or DisplayConfig()
        started = time.perf_counter()

        accumulator = _GraphAccumulator()
        report = BuildReport()
        edge_pattern = EDGE_PATTERNS[config.display_mode]

        for row in rows:
            report.rows_seen += 1
            self._accumulate_row(accumulator, row, config, edge_pattern, report)

        graph = accumulator.freeze()
        report.node_count = graph.node_count
        report.link_count = graph.link_count
        report.duration_ms = (time.perf_counter() - started) * 1000

        self._log_audit(
            action="graph_built",
            metadata=(
                ("display_mode", config.display_mode.value),
                ("product_display_mode", config.product_display_mode.value),
                ("hs_code_level", config.hs_code_level.value),
                ("rows_seen", report.rows_seen),
                ("rows_skipped", report.rows_skipped),
                ("values_unparseable", report.values_unparseable),
                ("node_count", report.node_count),
                ("link_count", report.link_count),
            )
        )
        logger.info(
            "Built graph: %d nodes, %d links from %d rows (%d skipped)",
            report.node_count, report.link_count, report.rows_seen, report.rows_skipped
        )
        return BuildResult(graph=graph, report=report, config=config)

    def _accumulate_row(
        self,
        accumulator: _GraphAccumulator,
        row,
        config: DisplayConfig,
        edge_pattern,
        report: BuildReport
    ) -> None:
        if not isinstance(row, Mapping):
            report.record_skip("<row>")
            return

        names = {}
        originals = {}
        for entity_type, field_name in (
            (EntityType.COUNTRY, FIELD_COUNTRY),
            (EntityType.SUPPLIER, FIELD_SUPPLIER),
            (EntityType.IMPORTER, FIELD_IMPORTER),
        ):
            raw = row.get(field_name)
            normalized = self._normalizer.normalize(raw, entity_type)
            if not normalized:
                report.record_skip(field_name)
                return
            names[entity_type] = normalized
            originals[entity_type] = raw

        product = self._product_identity(row, config)
        if product is None:
            field_name = (
                FIELD_HS_CODE
                if config.product_display_mode == ProductDisplayMode.HS_CODE
                else FIELD_PRODUCT_NAME
            )
            report.record_skip(field_name)
            return
        product_id, product_label, product_original = product

        nodes = {
            entity_type: accumulator.get_or_create_node(
                entity_id(entity_type, names[entity_type]),
                names[entity_type],
                entity_type,
                originals[entity_type],
            )
            for entity_type in (EntityType.COUNTRY, EntityType.SUPPLIER, EntityType.IMPORTER)
        }
        nodes[EntityType.PRODUCT] = accumulator.get_or_create_node(
            product_id, product_label, EntityType.PRODUCT, product_original
        )

        value, parsed = parse_monetary_value(row.get(FIELD_VALUE))
        if not parsed:
            report.values_unparseable += 1

        # Every touched node counts the row, even if no edge reaches it
        for node in nodes.values():
            node.transaction_count += 1
            node.total_value += value

        for source_type, target_type in edge_pattern:
            accumulator.add_link(nodes[source_type], nodes[target_type], value)

        report.rows_used += 1

    def _product_identity(self, row: Mapping, config: DisplayConfig) -> Optional[Tuple[str, str, str]]:
        """Return (node id, display label, original text) or None when missing."""
        if config.product_display_mode == ProductDisplayMode.HS_CODE:
            raw_code = coerce_text(row.get(FIELD_HS_CODE))
            if not raw_code.strip():
                return None
            label = hs_code_label(raw_code, config.hs_code_level)
            return entity_id(EntityType.PRODUCT, label), label, raw_code

        raw_name = row.get(FIELD_PRODUCT_NAME)
        normalized = self._normalizer.normalize(raw_name, EntityType.PRODUCT)
        if not normalized:
            return None
        return product_name_id(normalized), product_name_label(normalized), raw_name

    def _log_audit(self, action: str, metadata: tuple = ()) -> None:
        self._audit_log.append(AuditLogEntry.create(
            event_type=AuditEventType.BUILD,
            layer="builder",
            action=action,
            metadata=metadata,
        ))

    def get_audit_log(self) -> List[AuditLogEntry]:
        """Return copy of audit log entries."""
        return list(self._audit_log)

    def drain_audit_log(self) -> List[AuditLogEntry]:
        """Return and clear pending audit entries."""
        entries, self._audit_log = self._audit_log, []
        return entries


def build_graph(rows: Iterable[Mapping], config: Optional[DisplayConfig] = None) -> Graph:
    """Build with a default-configured builder and return only the graph."""
    return GraphBuilder().build(rows, config).graph

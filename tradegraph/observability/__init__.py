"""
Observability & Audit Layer

RESPONSIBILITY: Audit trail and metrics for every pipeline stage
ALLOWED INPUTS: AuditLogEntry copies and metric observations from other layers
OUTPUTS: Read-only audit entries, metric series, summaries

WHAT THIS LAYER MUST NOT DO:
============================
- Modify system behavior
- Filter or interpret events (only record them)
- Make decisions based on logged data
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from ..contracts.base import Timestamp
from ..contracts.events import AuditEventType, AuditLogEntry, MetricPoint


# =============================================================================
# LOG COLLECTOR
# =============================================================================

class LogCollector:
    """
    Append-only collector for one layer's audit entries.
    """

    def __init__(self, layer_name: str, max_entries: int = 10000):
        self._layer_name = layer_name
        self._max_entries = max_entries
        self._entries: List[AuditLogEntry] = []

    def collect(self, entry: AuditLogEntry):
        self._entries.append(entry)
        # Oldest entries go first once the cap is reached
        if len(self._entries) > self._max_entries:
            del self._entries[:len(self._entries) - self._max_entries]

    def get_entries(self, event_type: Optional[AuditEventType] = None) -> List[AuditLogEntry]:
        if event_type is None:
            return list(self._entries)
        return [e for e in self._entries if e.event_type == event_type]

    @property
    def layer_name(self) -> str:
        return self._layer_name

    @property
    def entry_count(self) -> int:
        return len(self._entries)


# =============================================================================
# METRICS COLLECTOR
# =============================================================================

class MetricType(Enum):
    COUNTER = "counter"
    GAUGE = "gauge"
    TIMING = "timing"


@dataclass
class MetricDefinition:
    """Definition of a metric to collect."""
    name: str
    metric_type: MetricType
    description: str
    labels: Tuple[str, ...] = field(default_factory=tuple)


DEFAULT_METRICS = (
    MetricDefinition(
        name="graph_build_duration_ms",
        metric_type=MetricType.TIMING,
        description="Full graph build time in milliseconds",
        labels=("display_mode",)
    ),
    MetricDefinition(
        name="rows_skipped_total",
        metric_type=MetricType.COUNTER,
        description="Rows skipped for a missing required field"
    ),
    MetricDefinition(
        name="values_unparseable_total",
        metric_type=MetricType.COUNTER,
        description="Monetary values that degraded to zero"
    ),
    MetricDefinition(
        name="visible_nodes",
        metric_type=MetricType.GAUGE,
        description="Nodes in the current visible subgraph"
    ),
    MetricDefinition(
        name="visible_links",
        metric_type=MetricType.GAUGE,
        description="Links in the current visible subgraph"
    ),
    MetricDefinition(
        name="source_load_failures_total",
        metric_type=MetricType.COUNTER,
        description="Source fetch/parse failures"
    ),
)


class MetricsCollector:
    """
    Metric series keyed by metric name.

    Each series keeps at most max_points observations. Counter totals are
    accumulated separately so trimming never changes them.
    """

    def __init__(self, max_points: int = 1000):
        self._max_points = max_points
        self._metrics: Dict[str, List[MetricPoint]] = {}
        self._totals: Dict[str, float] = {}
        self._definitions: Dict[str, MetricDefinition] = {}
        for definition in DEFAULT_METRICS:
            self.register_metric(definition)

    def register_metric(self, definition: MetricDefinition):
        self._definitions[definition.name] = definition
        self._metrics.setdefault(definition.name, [])
        self._totals.setdefault(definition.name, 0.0)

    def record(self, metric_name: str, value: float, labels: Tuple[Tuple[str, str], ...] = ()):
        if metric_name not in self._definitions:
            raise KeyError(f"Unknown metric: {metric_name}")
        series = self._metrics[metric_name]
        series.append(MetricPoint(
            metric_name=metric_name,
            value=float(value),
            timestamp=Timestamp.now(),
            labels=labels
        ))
        self._totals[metric_name] += float(value)
        if len(series) > self._max_points:
            del series[:len(series) - self._max_points]

    def get_series(self, metric_name: str) -> List[MetricPoint]:
        return list(self._metrics.get(metric_name, []))

    def latest(self, metric_name: str) -> Optional[float]:
        series = self._metrics.get(metric_name)
        return series[-1].value if series else None

    def total(self, metric_name: str) -> float:
        return self._totals.get(metric_name, 0.0)

    def summary(self) -> Dict[str, dict]:
        result = {}
        for name, definition in self._definitions.items():
            points = self._metrics[name]
            if definition.metric_type == MetricType.COUNTER:
                value = self.total(name)
            else:
                value = points[-1].value if points else None
            result[name] = {'type': definition.metric_type.value, 'value': value}
        return result


# =============================================================================
# OBSERVABILITY ENGINE
# =============================================================================

@dataclass
class ObservabilityConfig:
    max_entries_per_layer: int = 10000
    max_points_per_metric: int = 1000


class ObservabilityEngine:
    """Aggregates per-layer audit collectors and the metrics collector."""

    def __init__(self, config: Optional[ObservabilityConfig] = None):
        self._config = config or ObservabilityConfig()
        self._collectors: Dict[str, LogCollector] = {}
        self._metrics = MetricsCollector(self._config.max_points_per_metric)

    def collect_audit(self, entry: AuditLogEntry):
        collector = self._collectors.get(entry.layer)
        if collector is None:
            collector = LogCollector(entry.layer, self._config.max_entries_per_layer)
            self._collectors[entry.layer] = collector
        collector.collect(entry)

    def collect_all(self, entries: Iterable[AuditLogEntry]):
        for entry in entries:
            self.collect_audit(entry)

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    def get_audit_log(self, layer: Optional[str] = None) -> List[AuditLogEntry]:
        if layer is not None:
            collector = self._collectors.get(layer)
            return collector.get_entries() if collector else []
        entries = [e for c in self._collectors.values() for e in c.get_entries()]
        return sorted(entries, key=lambda e: e.timestamp.value)


__all__ = [
    'LogCollector', 'MetricsCollector', 'MetricType', 'MetricDefinition',
    'ObservabilityConfig', 'ObservabilityEngine',
]

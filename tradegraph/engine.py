"""
Engine Orchestration Module

Unified interface that owns pipeline state and drives recomputation through
explicit state transitions.

DESIGN PRINCIPLES:
==================
1. Stages communicate only through immutable contracts
2. A DisplayConfig change rebuilds the full graph from the loaded rows
3. A FilterState change re-projects the existing full graph, never rebuilds
4. Pipeline conditions (no data, source unavailable, empty view) are
   returned as explicit states, never raised
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Optional, Tuple
import logging

from .contracts.base import Error, ErrorCode, Result
from .contracts.events import AuditEventType, AuditLogEntry
from .contracts.graph import DisplayConfig, FilterState, Graph, VisibleGraph
from .core.builder import BuildReport, BuildResult, GraphBuilder
from .core.filtering import FilterEngine
from .core.topology import GraphMetrics, TopologyEngine
from .ingestion import HttpRowSource, RowSource, SourceConfig, SourceLoadResult
from .layout import LayoutConfig, LayoutHints, LayoutParameterizer
from .normalization import NormalizationConfig, Normalizer
from .observability import ObservabilityConfig, ObservabilityEngine
from .presentation import NodeSummary


logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Unified configuration for the whole pipeline."""
    normalization: NormalizationConfig = None
    layout: LayoutConfig = None
    source: SourceConfig = None
    observability: ObservabilityConfig = None
    display: DisplayConfig = None
    initial_threshold: int = 1

    def __post_init__(self):
        self.normalization = self.normalization or NormalizationConfig()
        self.layout = self.layout or LayoutConfig()
        self.source = self.source or SourceConfig()
        self.observability = self.observability or ObservabilityConfig()
        self.display = self.display or DisplayConfig()


class PipelineStatus(Enum):
    NO_DATA = "no_data"
    SOURCE_UNAVAILABLE = "source_unavailable"
    EMPTY_VISIBLE_GRAPH = "empty_visible_graph"
    READY = "ready"


@dataclass(frozen=True)
class PipelineView:
    """Everything a rendering collaborator needs for one frame."""
    status: PipelineStatus
    display_config: DisplayConfig
    filter_state: FilterState
    visible: Optional[VisibleGraph] = None
    layout: Optional[LayoutHints] = None
    report: Optional[BuildReport] = None
    error: Optional[Error] = None

    @property
    def focus_entity_id(self) -> Optional[str]:
        return self.visible.focus_entity_id if self.visible else None

    @property
    def graph(self) -> Graph:
        return self.visible.graph if self.visible else Graph.empty()


class TradeGraphEngine:
    """
    Trade network pipeline.

    LAYER FLOW:
    ===========
    1. Source: RowSource -> rows
    2. Build: rows + DisplayConfig -> full Graph (GraphBuilder)
    3. Filter: full Graph + FilterState -> VisibleGraph (FilterEngine)
    4. Layout: VisibleGraph + DisplayMode -> LayoutHints (LayoutParameterizer)
    5. Observability: records every stage
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self._config = config or EngineConfig()

        self._builder = GraphBuilder(Normalizer(self._config.normalization))
        self._filter = FilterEngine()
        self._layout = LayoutParameterizer(self._config.layout)
        self._observability = ObservabilityEngine(self._config.observability)

        self._rows: Optional[Tuple[Mapping, ...]] = None
        self._source_error: Optional[Error] = None
        self._display_config = self._config.display
        self._filter_state = FilterState(min_transaction_threshold=self._config.initial_threshold)
        self._build: Optional[BuildResult] = None
        self._visible: Optional[VisibleGraph] = None

    # =========================================================================
    # LOADING
    # =========================================================================

    def load_rows(self, rows: Iterable[Mapping]) -> None:
        """Adopt already-parsed rows and rebuild."""
        self._rows = tuple(rows)
        self._source_error = None
        self._audit(AuditEventType.INGESTION, "rows_loaded", metadata=(("rows", len(self._rows)),))
        self._rebuild()

    def load_source(self, source: RowSource) -> SourceLoadResult:
        return self.apply_load_result(source.load())

    async def load_source_async(self, source: HttpRowSource) -> SourceLoadResult:
        return self.apply_load_result(await source.fetch())

    def apply_load_result(self, result: SourceLoadResult) -> SourceLoadResult:
        if result.is_success:
            self.load_rows(result.rows)
            return result

        # No graph can be built without a source: drop everything
        self._rows = None
        self._build = None
        self._visible = None
        self._source_error = result.error
        self._audit(AuditEventType.ERROR, "source_unavailable", entity_id=result.source)
        self._observability.metrics.record("source_load_failures_total", 1)
        logger.error("Source %s unavailable: %s", result.source,
                     result.error.message if result.error else "unknown error")
        return result

    # =========================================================================
    # STATE TRANSITIONS
    # =========================================================================

    def set_display_config(self, config: DisplayConfig) -> None:
        if config == self._display_config:
            return
        if config.display_mode != self._display_config.display_mode:
            self._filter_state = self._filter_state.with_focus(None)
        self._display_config = config
        self._audit(
            AuditEventType.STATE_CHANGE,
            "display_config_changed",
            metadata=(
                ("display_mode", config.display_mode.value),
                ("product_display_mode", config.product_display_mode.value),
                ("hs_code_level", config.hs_code_level.value),
            )
        )
        self._rebuild()

    def set_filter_state(self, state: FilterState) -> None:
        self._filter_state = state
        self._refilter()

    def set_threshold(self, threshold: int) -> None:
        self.set_filter_state(self._filter_state.with_threshold(threshold))

    def set_search(self, term: str) -> None:
        self.set_filter_state(self._filter_state.with_search(term))

    def select(self, node_id: Optional[str]) -> Result:
        """
        Toggle focus on a node of the full graph.

        Selecting the focused node again clears the focus; None clears it.
        """
        if node_id is None or node_id == self._filter_state.focus_entity_id:
            self._audit(AuditEventType.STATE_CHANGE, "focus_cleared")
            self.set_filter_state(self._filter_state.with_focus(None))
            return Result.success(None)

        if self._build is None or node_id not in self._build.graph.nodes:
            return Result.failure(Error.create(
                ErrorCode.UNKNOWN_ENTITY, f"Unknown entity: {node_id}", node_id=node_id
            ))
        self._audit(AuditEventType.STATE_CHANGE, "focus_selected", entity_id=node_id)
        self.set_filter_state(self._filter_state.with_focus(node_id))
        return Result.success(node_id)

    def clear_selection(self) -> None:
        """Drop focus and search term, keep the threshold."""
        self.set_filter_state(self._filter_state.cleared())

    def _audit(
        self,
        event_type: AuditEventType,
        action: str,
        entity_id: Optional[str] = None,
        metadata: tuple = ()
    ) -> None:
        self._observability.collect_audit(AuditLogEntry.create(
            event_type=event_type,
            layer="engine",
            action=action,
            entity_id=entity_id,
            metadata=metadata,
        ))

    # =========================================================================
    # RECOMPUTATION
    # =========================================================================

    def _rebuild(self) -> None:
        if self._rows is None:
            return
        self._build = self._builder.build(self._rows, self._display_config)
        self._observability.collect_all(self._builder.drain_audit_log())

        report = self._build.report
        metrics = self._observability.metrics
        metrics.record(
            "graph_build_duration_ms", report.duration_ms,
            labels=(("display_mode", self._display_config.display_mode.value),)
        )
        metrics.record("rows_skipped_total", report.rows_skipped)
        metrics.record("values_unparseable_total", report.values_unparseable)
        for diagnostic in report.diagnostics():
            logger.warning("%s: %s", diagnostic.code.name, diagnostic.message)
        self._refilter()

    def _refilter(self) -> None:
        if self._build is None:
            return
        visible = self._filter.visible_subgraph(self._build.graph, self._filter_state)
        self._observability.collect_all(self._filter.drain_audit_log())

        if visible.auto_focused:
            self._filter_state = self._filter_state.with_focus(visible.focus_entity_id)

        self._visible = visible
        self._observability.metrics.record("visible_nodes", visible.graph.node_count)
        self._observability.metrics.record("visible_links", visible.graph.link_count)

    # =========================================================================
    # READ INTERFACE
    # =========================================================================

    @property
    def display_config(self) -> DisplayConfig:
        return self._display_config

    @property
    def filter_state(self) -> FilterState:
        return self._filter_state

    @property
    def full_graph(self) -> Optional[Graph]:
        return self._build.graph if self._build else None

    @property
    def build_report(self) -> Optional[BuildReport]:
        return self._build.report if self._build else None

    @property
    def observability(self) -> ObservabilityEngine:
        return self._observability

    @property
    def status(self) -> PipelineStatus:
        if self._source_error is not None:
            return PipelineStatus.SOURCE_UNAVAILABLE
        if self._rows is None or self._visible is None:
            return PipelineStatus.NO_DATA
        if self._visible.is_empty:
            return PipelineStatus.EMPTY_VISIBLE_GRAPH
        return PipelineStatus.READY

    def view(
        self,
        width: Optional[float] = None,
        height: Optional[float] = None,
        seed: Optional[int] = None
    ) -> PipelineView:
        status = self.status
        base = dict(display_config=self._display_config, filter_state=self._filter_state)

        if status == PipelineStatus.SOURCE_UNAVAILABLE:
            return PipelineView(status=status, error=self._source_error, **base)
        if status == PipelineStatus.NO_DATA:
            return PipelineView(
                status=status,
                error=Error.create(ErrorCode.NO_DATA_LOADED, "No data loaded"),
                **base
            )
        if status == PipelineStatus.EMPTY_VISIBLE_GRAPH:
            return PipelineView(
                status=status,
                visible=self._visible,
                report=self._build.report,
                error=Error.create(
                    ErrorCode.EMPTY_VISIBLE_GRAPH,
                    "No data to display",
                    threshold=str(self._filter_state.min_transaction_threshold),
                    search=self._filter_state.search_term,
                ),
                **base
            )

        layout = self._layout.layout_hints(
            self._visible, self._display_config.display_mode,
            width=width, height=height, seed=seed
        )
        return PipelineView(
            status=status,
            visible=self._visible,
            layout=layout,
            report=self._build.report,
            **base
        )

    def node_summary(self, node_id: str) -> Result:
        graph = self.full_graph
        node = graph.node(node_id) if graph is not None else None
        if node is None:
            return Result.failure(Error.create(
                ErrorCode.UNKNOWN_ENTITY, f"Unknown entity: {node_id}", node_id=node_id
            ))
        return Result.success(NodeSummary.from_node(node))

    def visible_metrics(self) -> GraphMetrics:
        graph = self._visible.graph if self._visible else Graph.empty()
        return TopologyEngine(graph).compute_metrics()

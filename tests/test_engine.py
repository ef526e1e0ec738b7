"""
Engine Orchestration Tests
==========================

Pipeline states, rebuild/refilter transitions and selection handling.
"""

import pytest

from tradegraph.contracts.base import DisplayMode, ErrorCode, HsCodeLevel
from tradegraph.contracts.graph import DisplayConfig, FilterState
from tradegraph.engine import EngineConfig, PipelineStatus, TradeGraphEngine
from tradegraph.ingestion import FileRowSource, InMemoryRowSource
from tradegraph.normalization import NormalizationConfig
from fixtures import CHINA, HS_85, SAMPLE_ROWS, SIEMENS, SUZLON, VESTAS


@pytest.fixture
def engine():
    engine = TradeGraphEngine()
    engine.load_rows(SAMPLE_ROWS)
    return engine


def builder_runs(engine):
    return len(engine.observability.get_audit_log(layer="builder"))


class TestPipelineStatus:

    def test_no_data_before_load(self):
        engine = TradeGraphEngine()
        assert engine.status == PipelineStatus.NO_DATA
        view = engine.view()
        assert view.error.code == ErrorCode.NO_DATA_LOADED
        assert view.graph.is_empty
        assert view.layout is None

    def test_ready_after_load(self, engine):
        view = engine.view(seed=0)
        assert view.status == PipelineStatus.READY
        assert view.graph.node_count == 8
        assert set(view.layout.nodes) == set(view.graph.nodes)
        assert view.report.rows_used == len(SAMPLE_ROWS)
        assert view.error is None

    def test_empty_visible_graph_is_distinct(self, engine):
        engine.set_threshold(100)
        view = engine.view()
        assert view.status == PipelineStatus.EMPTY_VISIBLE_GRAPH
        assert view.error.code == ErrorCode.EMPTY_VISIBLE_GRAPH
        assert view.report is not None
        assert view.layout is None

    def test_loaded_but_empty_rows(self):
        engine = TradeGraphEngine()
        engine.load_rows([])
        assert engine.status == PipelineStatus.EMPTY_VISIBLE_GRAPH
        assert engine.full_graph.is_empty

    def test_source_unavailable(self, tmp_path):
        engine = TradeGraphEngine()
        engine.load_rows(SAMPLE_ROWS)
        result = engine.load_source(FileRowSource(tmp_path / "missing.csv"))
        assert not result.is_success
        assert engine.status == PipelineStatus.SOURCE_UNAVAILABLE
        assert engine.full_graph is None
        view = engine.view()
        assert view.error.code == ErrorCode.SOURCE_UNAVAILABLE
        assert engine.observability.metrics.total("source_load_failures_total") == 1

    def test_recovery_after_failed_load(self, tmp_path):
        engine = TradeGraphEngine()
        engine.load_source(FileRowSource(tmp_path / "missing.csv"))
        engine.load_source(InMemoryRowSource(SAMPLE_ROWS))
        assert engine.status == PipelineStatus.READY


class TestTransitions:

    def test_initial_config(self):
        config = EngineConfig(
            display=DisplayConfig(display_mode=DisplayMode.COUNTRY_SUPPLIER),
            initial_threshold=2,
        )
        engine = TradeGraphEngine(config)
        engine.load_rows(SAMPLE_ROWS)
        assert engine.filter_state.min_transaction_threshold == 2
        assert engine.display_config.display_mode == DisplayMode.COUNTRY_SUPPLIER
        assert engine.view().graph.link_count == 2

    def test_filter_change_does_not_rebuild(self, engine):
        runs = builder_runs(engine)
        full = engine.full_graph
        engine.set_threshold(2)
        engine.set_search("suzlon")
        assert builder_runs(engine) == runs
        assert engine.full_graph is full

    def test_display_change_rebuilds(self, engine):
        runs = builder_runs(engine)
        engine.set_display_config(DisplayConfig(hs_code_level=HsCodeLevel.EXACT))
        assert builder_runs(engine) == runs + 1
        assert engine.full_graph.node("product-HS 850212") is not None

    def test_identical_display_config_is_noop(self, engine):
        runs = builder_runs(engine)
        engine.set_display_config(DisplayConfig())
        assert builder_runs(engine) == runs

    def test_display_mode_change_clears_focus(self, engine):
        engine.select(SUZLON)
        engine.set_display_config(DisplayConfig(display_mode=DisplayMode.SUPPLIER_PRODUCT))
        assert engine.filter_state.focus_entity_id is None

    def test_hs_level_change_keeps_focus(self, engine):
        engine.select(SUZLON)
        engine.set_display_config(DisplayConfig(hs_code_level=HsCodeLevel.SUBCATEGORY))
        assert engine.filter_state.focus_entity_id == SUZLON

    def test_auto_focus_is_adopted(self, engine):
        engine.set_search("vestas")
        assert engine.filter_state.focus_entity_id == VESTAS
        view = engine.view()
        assert view.focus_entity_id == VESTAS
        assert view.visible.auto_focused

    def test_stale_focus_kept_in_state(self, engine):
        engine.select(VESTAS)
        engine.set_threshold(2)
        assert engine.view().focus_entity_id is None
        assert engine.filter_state.focus_entity_id == VESTAS
        engine.set_threshold(1)
        assert engine.view().focus_entity_id == VESTAS

    def test_invalid_threshold(self, engine):
        with pytest.raises(ValueError):
            engine.set_threshold(0)


class TestSelection:

    def test_select_focuses(self, engine):
        result = engine.select(SIEMENS)
        assert result.is_success
        assert engine.view().focus_entity_id == SIEMENS

    def test_select_again_toggles_off(self, engine):
        engine.select(SIEMENS)
        engine.select(SIEMENS)
        assert engine.filter_state.focus_entity_id is None

    def test_select_unknown(self, engine):
        result = engine.select("supplier-NOBODY")
        assert result.is_failure
        assert result.error.code == ErrorCode.UNKNOWN_ENTITY
        assert engine.filter_state.focus_entity_id is None

    def test_clear_selection_keeps_threshold(self, engine):
        engine.set_filter_state(FilterState(
            min_transaction_threshold=2, search_term="china", focus_entity_id=CHINA
        ))
        engine.clear_selection()
        assert engine.filter_state == FilterState(min_transaction_threshold=2)

    def test_node_summary(self, engine):
        result = engine.node_summary(HS_85)
        assert result.is_success
        assert result.value.transaction_count == 6
        assert engine.node_summary("product-HS 99xx").error.code == ErrorCode.UNKNOWN_ENTITY


class TestObservability:

    def test_metrics_recorded(self, engine):
        metrics = engine.observability.metrics
        assert metrics.latest("visible_nodes") == 8
        assert metrics.latest("visible_links") == 8
        assert len(metrics.get_series("graph_build_duration_ms")) == 1
        engine.set_threshold(3)
        assert metrics.latest("visible_nodes") == 4

    def test_engine_audit_trail(self, engine):
        engine.select(SUZLON)
        engine.select(SUZLON)
        engine.set_display_config(DisplayConfig(display_mode=DisplayMode.COUNTRY_SUPPLIER))
        actions = [e.action for e in engine.observability.get_audit_log(layer="engine")]
        assert actions == [
            "rows_loaded", "focus_selected", "focus_cleared", "display_config_changed",
        ]

    def test_visible_metrics(self, engine):
        engine.select(SUZLON)
        assert engine.visible_metrics().node_count == 3

    def test_custom_normalization(self):
        config = EngineConfig(normalization=NormalizationConfig(brand_aliases=()))
        engine = TradeGraphEngine(config)
        engine.load_rows([{
            "Foreign Country": "India",
            "Supplier Name": "Suzlon Energy Ltd",
            "Importer Name": "Acme",
            "HS Code ": "8502",
        }])
        assert engine.full_graph.node("supplier-SUZLON ENERGY") is not None

"""
Layout Parameterizer Tests
==========================

Type bands, force constants, collision radii and seeded initial placement.
"""

import math

import pytest

from tradegraph.contracts.base import DisplayMode, EntityType
from tradegraph.contracts.graph import FilterState, Graph
from tradegraph.core.builder import build_graph
from tradegraph.core.filtering import visible_subgraph
from tradegraph.layout import LayoutConfig, LayoutParameterizer, collision_radius
from fixtures import ACME, CHINA, HS_85, SAMPLE_ROWS, SUZLON


WIDTH = 1000.0
HEIGHT = 600.0


@pytest.fixture(scope="module")
def visible():
    return visible_subgraph(build_graph(SAMPLE_ROWS), FilterState())


@pytest.fixture
def parameterizer():
    return LayoutParameterizer()


class TestTargets:

    def test_full_mode_type_bands(self, parameterizer, visible):
        hints = parameterizer.layout_hints(visible, DisplayMode.FULL, WIDTH, HEIGHT, seed=1)
        assert hints.nodes[CHINA].target_x == pytest.approx(200.0)
        assert hints.nodes[SUZLON].target_x == pytest.approx(400.0)
        assert hints.nodes[HS_85].target_x == pytest.approx(600.0)
        assert hints.nodes[ACME].target_x == pytest.approx(800.0)

    def test_band_order_left_to_right(self, parameterizer):
        xs = [
            parameterizer.target_x(t, DisplayMode.FULL, WIDTH)
            for t in (EntityType.COUNTRY, EntityType.SUPPLIER, EntityType.PRODUCT, EntityType.IMPORTER)
        ]
        assert xs == sorted(xs)
        assert len(set(xs)) == 4

    @pytest.mark.parametrize("mode", [m for m in DisplayMode if m != DisplayMode.FULL])
    def test_other_modes_pull_to_center(self, parameterizer, mode):
        for entity_type in EntityType:
            assert parameterizer.target_x(entity_type, mode, WIDTH) == WIDTH / 2

    def test_target_y_is_vertical_center(self, parameterizer, visible):
        hints = parameterizer.layout_hints(visible, DisplayMode.FULL, WIDTH, HEIGHT, seed=1)
        assert all(h.target_y == HEIGHT / 2 for h in hints.nodes.values())


class TestForces:

    def test_full_mode_forces(self, parameterizer):
        forces = parameterizer.forces(DisplayMode.FULL, HEIGHT)
        assert forces.charge_strength == -400.0
        assert forces.link_distance == 100.0
        assert forces.x_strength == 0.3
        assert forces.y_strength == 0.1
        assert forces.center_y == HEIGHT / 2

    def test_non_full_mode_uses_weaker_x_force(self, parameterizer):
        assert parameterizer.forces(DisplayMode.SUPPLIER_IMPORTER, HEIGHT).x_strength == 0.1

    def test_collision_radius(self):
        assert collision_radius(0) == 10.0
        assert collision_radius(16) == 14.0
        assert collision_radius(100, padding=5) == 15.0
        radii = [collision_radius(n) for n in range(50)]
        assert radii == sorted(radii)

    def test_hint_radius_matches_transaction_count(self, parameterizer, visible):
        hints = parameterizer.layout_hints(visible, DisplayMode.FULL, WIDTH, HEIGHT, seed=1)
        hs_count = visible.graph.node(HS_85).transaction_count
        assert hints.nodes[HS_85].collision_radius == pytest.approx(math.sqrt(hs_count) + 10)


class TestInitialPlacement:

    def test_same_seed_same_hints(self, parameterizer, visible):
        first = parameterizer.layout_hints(visible, DisplayMode.FULL, WIDTH, HEIGHT, seed=42)
        second = parameterizer.layout_hints(visible, DisplayMode.FULL, WIDTH, HEIGHT, seed=42)
        assert first.to_dict() == second.to_dict()

    def test_initial_position_inside_vertical_spread(self, parameterizer, visible):
        hints = parameterizer.layout_hints(visible, DisplayMode.FULL, WIDTH, HEIGHT, seed=7)
        for hint in hints.nodes.values():
            assert HEIGHT / 4 <= hint.initial_y <= 3 * HEIGHT / 4
            assert hint.initial_x == hint.target_x

    def test_accepts_plain_graph(self, parameterizer, visible):
        hints = parameterizer.layout_hints(visible.graph, DisplayMode.FULL, WIDTH, HEIGHT, seed=3)
        assert set(hints.nodes) == set(visible.graph.nodes)

    def test_empty_graph(self, parameterizer):
        hints = parameterizer.layout_hints(Graph.empty(), DisplayMode.FULL, seed=0)
        assert dict(hints.nodes) == {}
        assert hints.width == 960.0
        assert hints.height == 640.0

    def test_rejects_non_positive_canvas(self, parameterizer, visible):
        with pytest.raises(ValueError):
            parameterizer.layout_hints(visible, DisplayMode.FULL, 0, HEIGHT)
        with pytest.raises(ValueError):
            LayoutConfig(width=-1)

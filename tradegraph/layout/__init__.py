"""
Layout Parameterization Layer

RESPONSIBILITY: Per-node position hints and force constants for an external
force-directed layout engine
ALLOWED INPUTS: VisibleGraph (or Graph), DisplayMode, canvas size
OUTPUTS: LayoutHints

WHAT THIS LAYER MUST NOT DO:
============================
- Integrate forces or iterate a simulation
- Hold simulation state between calls
- Mutate nodes (hints are returned alongside, keyed by node id)

BANDS:
======
FULL mode pulls each entity type toward its own vertical band
(country 0.2, supplier 0.4, product 0.6, importer 0.8 of the width);
every other mode pulls all nodes toward the horizontal center.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Union

import numpy as np

from ..contracts.base import DisplayMode, EntityType
from ..contracts.graph import Graph, VisibleGraph


DEFAULT_TYPE_BANDS = MappingProxyType({
    EntityType.COUNTRY: 0.2,
    EntityType.SUPPLIER: 0.4,
    EntityType.PRODUCT: 0.6,
    EntityType.IMPORTER: 0.8,
})


@dataclass(frozen=True)
class LayoutConfig:
    """Simulation-wide constants."""
    width: float = 960.0
    height: float = 640.0
    charge_strength: float = -400.0
    link_distance: float = 100.0
    banded_x_strength: float = 0.3
    central_x_strength: float = 0.1
    y_strength: float = 0.1
    collision_padding: float = 10.0
    vertical_spread: float = 0.5
    type_bands: Mapping[EntityType, float] = field(default_factory=lambda: DEFAULT_TYPE_BANDS)

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Layout width and height must be positive")


@dataclass(frozen=True)
class ForceParameters:
    """Forces applied uniformly by the layout engine."""
    charge_strength: float
    link_distance: float
    x_strength: float
    y_strength: float
    center_y: float
    collision_padding: float

    def to_dict(self) -> dict:
        return {
            'charge_strength': self.charge_strength,
            'link_distance': self.link_distance,
            'x_strength': self.x_strength,
            'y_strength': self.y_strength,
            'center_y': self.center_y,
            'collision_padding': self.collision_padding,
        }


@dataclass(frozen=True)
class NodeLayoutHint:
    initial_x: float
    initial_y: float
    target_x: float
    target_y: float
    x_strength: float
    y_strength: float
    collision_radius: float

    def to_dict(self) -> dict:
        return {
            'initial_x': self.initial_x,
            'initial_y': self.initial_y,
            'target_x': self.target_x,
            'target_y': self.target_y,
            'x_strength': self.x_strength,
            'y_strength': self.y_strength,
            'collision_radius': self.collision_radius,
        }


@dataclass(frozen=True)
class LayoutHints:
    nodes: Mapping[str, NodeLayoutHint]
    forces: ForceParameters
    width: float
    height: float

    def to_dict(self) -> dict:
        return {
            'width': self.width,
            'height': self.height,
            'forces': self.forces.to_dict(),
            'nodes': {k: self.nodes[k].to_dict() for k in sorted(self.nodes)},
        }


def collision_radius(transaction_count: int, padding: float = 10.0) -> float:
    """Monotonic in transaction_count: sqrt(count) + padding."""
    return float(np.sqrt(max(transaction_count, 0)) + padding)


class LayoutParameterizer:
    """
    Computes layout parameters for a visible subgraph.

    Initial vertical jitter comes from a numpy Generator seeded per call,
    so a fixed seed reproduces the same hints.
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self._config = config or LayoutConfig()

    @property
    def config(self) -> LayoutConfig:
        return self._config

    def target_x(self, entity_type: EntityType, display_mode: DisplayMode, width: float) -> float:
        if display_mode == DisplayMode.FULL:
            return width * self._config.type_bands.get(entity_type, 0.5)
        return width / 2

    def forces(self, display_mode: DisplayMode, height: float) -> ForceParameters:
        cfg = self._config
        x_strength = cfg.banded_x_strength if display_mode == DisplayMode.FULL else cfg.central_x_strength
        return ForceParameters(
            charge_strength=cfg.charge_strength,
            link_distance=cfg.link_distance,
            x_strength=x_strength,
            y_strength=cfg.y_strength,
            center_y=height / 2,
            collision_padding=cfg.collision_padding,
        )

    def layout_hints(
        self,
        visible: Union[VisibleGraph, Graph],
        display_mode: DisplayMode,
        width: Optional[float] = None,
        height: Optional[float] = None,
        seed: Optional[int] = None
    ) -> LayoutHints:
        graph = visible.graph if isinstance(visible, VisibleGraph) else visible
        width = float(width if width is not None else self._config.width)
        height = float(height if height is not None else self._config.height)
        if width <= 0 or height <= 0:
            raise ValueError("Layout width and height must be positive")

        forces = self.forces(display_mode, height)

        node_ids = sorted(graph.nodes)
        rng = np.random.default_rng(seed)
        jitter = rng.random(len(node_ids))
        initial_y = height / 2 + (jitter - 0.5) * height * self._config.vertical_spread
        counts = np.array(
            [graph.nodes[node_id].transaction_count for node_id in node_ids], dtype=float
        )
        radii = np.sqrt(np.clip(counts, 0, None)) + self._config.collision_padding

        hints: Dict[str, NodeLayoutHint] = {}
        for index, node_id in enumerate(node_ids):
            x = self.target_x(graph.nodes[node_id].type, display_mode, width)
            hints[node_id] = NodeLayoutHint(
                initial_x=x,
                initial_y=float(initial_y[index]),
                target_x=x,
                target_y=forces.center_y,
                x_strength=forces.x_strength,
                y_strength=forces.y_strength,
                collision_radius=float(radii[index]),
            )

        return LayoutHints(
            nodes=MappingProxyType(hints),
            forces=forces,
            width=width,
            height=height,
        )


__all__ = [
    'LayoutConfig', 'LayoutParameterizer', 'LayoutHints', 'NodeLayoutHint',
    'ForceParameters', 'collision_radius', 'DEFAULT_TYPE_BANDS',
]

# simulation.py
"""
The simulation object a host drives: initialize, advance, toggle_pin.

All state lives on the instance; a host (the pygame viewer, a test, a script)
owns one and calls it from a single thread, reading positions only between
``advance`` calls.
"""

from __future__ import annotations

import logging

import numpy as np

from springmass.config import SimConfig
from springmass.mesh.grid import generate_grid, pinned_indices
from springmass.models import Plane, Sphere
from springmass.solver import Particle, SpringLink, SpringMassSolver
from springmass.types import VEC

logger = logging.getLogger(__name__)


class ClothSimulation:
    def __init__(self, config: SimConfig | None = None) -> None:
        self.config = (config if config is not None else SimConfig()).validate()
        self.ground: Plane = self.config.ground()
        self.obstacle: Sphere = self.config.obstacle()
        self._rng = np.random.default_rng(self.config.seed)
        self._solver: SpringMassSolver | None = None

    @property
    def solver(self) -> SpringMassSolver:
        if self._solver is None:
            raise RuntimeError("Simulation not initialized; call initialize() first")
        return self._solver

    @property
    def initialized(self) -> bool:
        return self._solver is not None

    def initialize(self) -> None:
        """(Re)build the mesh; drops every previous particle and spring."""
        points, springs = generate_grid(self.config, self._rng)
        self._solver = SpringMassSolver(points, springs, self.config, self.ground, self.obstacle)
        logger.info(
            f"Cloth {self.config.width}x{self.config.height} initialized, "
            f"pinned {pinned_indices(self.config.width)}"
        )

    def advance(self, dt: float) -> None:
        self.solver.advance(dt)

    def toggle_pin(self, index: int) -> bool:
        """Flip the pin of particle ``index``; returns the new state."""
        return self.solver.toggle_pin(index)

    @property
    def is_exploded(self) -> bool:
        return self._solver is not None and self._solver.is_exploded

    @property
    def particles(self) -> list[Particle]:
        return self.solver.particles

    @property
    def springs(self) -> list[SpringLink]:
        return self.solver.springs

    def positions(self) -> VEC:
        return self.solver.positions()

    def segments(self) -> VEC:
        return self.solver.segments()
